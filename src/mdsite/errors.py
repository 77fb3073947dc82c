"""Build error taxonomy"""


class SiteError(Exception):
    """Base class for every error the site builder reports."""


class MalformedFrontMatter(SiteError):
    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: malformed front matter ({reason})")


class UnknownLayout(SiteError):
    def __init__(self, path: str, layout: str):
        self.path = path
        self.layout = layout
        super().__init__(f"{path}: unknown layout '{layout}'")


class InvalidLayout(SiteError):
    """A layout exists but does not compile."""

    def __init__(self, layout: str, reason: str):
        self.layout = layout
        self.reason = reason
        super().__init__(f"layout '{layout}' is invalid ({reason})")


class RouteCollision(SiteError):
    def __init__(self, path_a: str, path_b: str, route: str):
        self.path_a = path_a
        self.path_b = path_b
        self.route = route
        super().__init__(f"{path_a} and {path_b} both resolve to route '{route}'")


class BrokenInternalLink(SiteError):
    def __init__(self, path: str, target: str):
        self.path = path
        self.target = target
        super().__init__(f"{path}: broken internal link '{target}'")


class BuildFailed(SiteError):
    """Aggregate of every fatal error found in a single build pass."""

    def __init__(self, errors: list[SiteError]):
        self.errors = list(errors)
        noun = "error" if len(self.errors) == 1 else "errors"
        super().__init__(f"Build failed with {len(self.errors)} {noun}")
