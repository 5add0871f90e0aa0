"""Ingress facade binding submission kinds to the ingestion and notification core."""

from .models import SubmissionResult
from .runner import IntakePipeline

__all__ = ["IntakePipeline", "SubmissionResult"]
