"""Validation Module - Key probing, classification, retries and dispatch"""

# Configuration
from .validation_config import (
    ValidationConfig,
    FailureReason,
    JitterType,
    TierDetection,
    OutcomeKind,
    AttemptOutcome
)

# Classification and retry decisions
from .classifier import ResponseClassifier, parse_retry_after
from .retry_policy import RetryPolicy, RetryAction, TerminalAction

# Executor and coordinator
from .async_validator import AsyncKeyValidator
from .pipeline import KeyValidationPipeline

__all__ = [
    # Configuration
    'ValidationConfig',
    'FailureReason',
    'JitterType',
    'TierDetection',
    'OutcomeKind',
    'AttemptOutcome',

    # Classification
    'ResponseClassifier',
    'parse_retry_after',
    'RetryPolicy',
    'RetryAction',
    'TerminalAction',

    # Validators
    'AsyncKeyValidator',
    'KeyValidationPipeline',
]
