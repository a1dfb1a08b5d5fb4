"""Custom exceptions for the datalake layer."""


class DatalakeError(Exception):
    """Base exception for datalake operations."""
    pass


class BucketDoesNotExistError(DatalakeError):
    """Exception raised when a bucket is missing and auto-creation is disabled."""

    def __init__(self, bucket: str):
        super().__init__(f"Bucket {bucket} does not exist")
        self.bucket = bucket


class MalformedEventError(DatalakeError):
    """Exception raised when a notification carries no usable object key."""
    pass


class StagingError(DatalakeError):
    """Exception raised when an object cannot be fetched to local staging."""

    def __init__(self, message: str, bucket: str, key: str):
        super().__init__(message)
        self.bucket = bucket
        self.key = key


class BucketNotFoundError(StagingError):
    """Exception raised when the bucket vanished before staging."""
    pass


class ObjectNotFoundError(StagingError):
    """Exception raised when the object vanished before staging."""
    pass


class ProcessorError(DatalakeError):
    """Exception wrapping a failure raised by a file processor."""

    def __init__(self, processor_name: str, file: str, cause: BaseException):
        super().__init__(f"Processor {processor_name} failed for {file}: {cause}")
        self.processor_name = processor_name
        self.file = file
        self.cause = cause


class TransportError(DatalakeError):
    """Exception delivered on a subscription's error channel."""

    def __init__(self, bucket: str, cause: BaseException):
        super().__init__(f"Listener error on bucket {bucket}: {cause}")
        self.bucket = bucket
        self.cause = cause


class SubscriptionOpenError(DatalakeError):
    """Exception raised when a bucket subscription cannot be opened."""

    def __init__(self, bucket: str, reason: str):
        super().__init__(f"Unable to listen on bucket {bucket}: {reason}")
        self.bucket = bucket


class UploadError(DatalakeError):
    """Exception raised when a file upload from disk fails."""
    pass
