"""
Error types
Every failure the reflection workflow can report
"""


class ReflectionError(Exception):
    """Base class for all application errors"""


class ConfigurationError(ReflectionError):
    """The LLM API key is not configured"""


class NothingToProcessError(ReflectionError):
    """A batch operation was requested with no input"""


class EmptyQueueError(NothingToProcessError):
    """No uploaded entries are waiting for analysis"""


class InsufficientDataError(NothingToProcessError):
    """No analyzed entries to build check-in suggestions from"""


class PassInProgressError(ReflectionError):
    """A pass of the same kind is already running"""


class GatewayError(ReflectionError):
    """The LLM service call failed (network, HTTP status, authentication)"""


class AnalysisGatewayError(GatewayError):
    """The LLM service call failed while analyzing an entry"""


class AnalysisFormatError(GatewayError):
    """The LLM returned analysis output that is not the expected JSON"""


class EmptyQuestionError(GatewayError):
    """The LLM returned a blank check-in question"""


class StorageError(ReflectionError):
    """Reading or writing the local store failed"""


class UploadError(ReflectionError):
    """An uploaded file could not be read"""
