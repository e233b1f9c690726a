"""
Domain exceptions raised by services and translated to HTTP errors by routers
"""


class QuizPortalError(Exception):
    """Base class for all domain errors"""


class UnsupportedFormatError(QuizPortalError):
    """File extension is not one of pdf, docx, pptx"""

    def __init__(self, extension: str):
        self.extension = extension
        super().__init__(f"Unsupported file type: .{extension}")


class CorruptDocumentError(QuizPortalError):
    """Document bytes could not be parsed"""


class LLMRequestError(QuizPortalError):
    """The language model endpoint failed or returned an unusable body"""

    def __init__(self, message: str, status_code: int = None, body: str = None):
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class GenerationFailedError(QuizPortalError):
    """Quiz content could not be produced from the model response"""

    def __init__(self, message: str, status_code: int = None, body: str = None):
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class ChatFailedError(QuizPortalError):
    """Chat reply could not be produced"""


class QuizNotFoundError(QuizPortalError):
    """Quiz id or share token does not resolve"""


class InvalidStateError(QuizPortalError):
    """Operation is not allowed in the quiz's current lifecycle state"""


class InvalidSubmissionError(QuizPortalError):
    """Attempt payload references questions outside the quiz"""


class InvalidUploadError(QuizPortalError):
    """Uploaded file failed validation"""


class RegistrationError(QuizPortalError):
    """Registration payload rejected"""


class VerificationError(QuizPortalError):
    """Email verification token rejected"""


class CourseNotFoundError(QuizPortalError):
    """Course id does not resolve"""


class MaterialNotFoundError(QuizPortalError):
    """Course material id does not resolve within the course"""


class InvalidCourseDataError(QuizPortalError):
    """Course or material payload rejected"""


class EnrollmentError(QuizPortalError):
    """Enrollment state does not allow the requested change"""
