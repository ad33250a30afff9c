"""
Registry errors

Every rejected operation raises one of these before touching state.
`kind` is the stable error name reported to callers; `field` names the
offending argument when there is one.
"""

from typing import Optional, Dict, Any


class RegistryError(Exception):
    """Base class for rejected registry operations"""

    kind = "RegistryError"

    def __init__(self, field: Optional[str] = None, message: str = ""):
        self.field = field
        self.message = message or self.kind
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.field:
            return f"{self.kind}({self.field}): {self.message}"
        return f"{self.kind}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "field": self.field,
            "message": self.message
        }


class AlreadyExistsError(RegistryError):
    kind = "AlreadyExists"


class NotFoundError(RegistryError):
    kind = "NotFound"


class UnauthorizedError(RegistryError):
    kind = "Unauthorized"


class InvalidArgumentError(RegistryError):
    kind = "InvalidArgument"


class OutOfRangeError(RegistryError):
    kind = "OutOfRange"


class AlreadyRevokedError(RegistryError):
    kind = "AlreadyRevoked"
