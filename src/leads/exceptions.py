"""Error taxonomy of the sales pipeline.

Every error carries a stable ``code`` and an HTTP ``status_code`` so the API
layer (see ``api.exceptions``) can tell clients *why* a mutation was refused.
"""


class PipelineError(Exception):
    code = "pipeline_error"
    status_code = 400
    default_detail = "The request could not be processed."

    def __init__(self, detail=None, *, errors=None):
        self.detail = detail or self.default_detail
        self.errors = errors or {}
        super().__init__(self.detail)


class NotFound(PipelineError):
    code = "not_found"
    status_code = 404
    default_detail = "The requested record does not exist."


class InvalidTransition(PipelineError):
    code = "invalid_transition"
    status_code = 409
    default_detail = "This stage change is not allowed."


class InvalidAssignee(PipelineError):
    code = "invalid_assignee"
    status_code = 400
    default_detail = "Pick an active salesperson working on this floor."


class LeadValidationError(PipelineError):
    """Missing or malformed input. ``errors`` maps field name to message."""

    code = "validation_error"
    status_code = 400
    default_detail = "Some fields are missing or invalid."

    def __init__(self, errors=None, detail=None):
        super().__init__(detail, errors=errors)


class TransientIO(PipelineError):
    code = "transient_io"
    status_code = 503
    default_detail = "The lead store is temporarily unavailable. The change was not applied."


class ChannelFull(PipelineError):
    code = "channel_full"
    status_code = 503
    default_detail = "Too many live subscriptions, try again later."
