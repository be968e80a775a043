"""Error taxonomy for pipeline configuration and execution."""


class RouteChainError(Exception):
    """Base class for all routechain errors."""


class ConfigurationError(RouteChainError):
    """Builder misuse detected at build/registration time."""


class MalformedStageResultError(RouteChainError):
    """A stage or finalware returned something outside its result contract."""

    def __init__(self, stage_name: str = "", result=None):
        self.stage_name = stage_name
        self.result = result
        message = 'Every middleware should return Continue/Halt or a mapping with a "next" bool attribute'
        if stage_name:
            message = f"{message} (stage {stage_name!r} returned {type(result).__name__})"
        super().__init__(message)


class MissingFinalMiddlewareError(RouteChainError):
    """The dispatcher was asked to finish a pipeline that has no finalware."""

    def __init__(self):
        super().__init__(
            "You have to use get/put/delete/post/patch at the end of the middleware chain"
        )


class ResponseAlreadySentError(RouteChainError):
    """A response handle was asked to send a second time."""
