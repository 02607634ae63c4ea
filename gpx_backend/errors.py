class GpxGenerationError(Exception):
    """Base class for every failure while serving a GPX generation request."""


class EmptyRouteError(GpxGenerationError, ValueError):
    """No anchors were supplied."""


class RouteTooLongError(GpxGenerationError, ValueError):
    """Interpolation would produce more points than allowed."""


class RenderError(GpxGenerationError):
    """The template collaborator failed to produce a document."""


class PersistenceError(GpxGenerationError):
    """Writing the document to disk failed."""


class CommandError(GpxGenerationError):
    """The configured post-generation command failed or could not start."""
