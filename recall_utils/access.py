"""
Object and field access pre-checks

Callers verify read/create/update/delete access before building query text.
A failed check raises AccessDeniedError carrying an AccessViolation that names
the operation, the object type and (for field-level failures) the field.

Design:
- Grants are declared per object type (ObjectGrant)
- Field names are matched case-insensitively
- Checks can be disabled globally (config "access_checks_enabled") or for a
  block of code (AccessChecker.bypass())
"""

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Iterator, Optional, Set

from .config import config

logger = logging.getLogger(__name__)


class AccessOperation(str, Enum):
    """Kinds of access a caller can request"""
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class AccessViolation:
    """
    Details of a failed access check

    Attributes:
        operation: Operation that was denied
        object_type: Object (table) the check ran against
        field: Offending field, None for object-level failures
    """
    operation: AccessOperation
    object_type: str
    field: Optional[str] = None


class LabelRegistry:
    """Human-readable labels for objects and fields, used in messages"""

    def __init__(
        self,
        object_labels: Optional[Dict[str, str]] = None,
        field_labels: Optional[Dict[str, Dict[str, str]]] = None,
    ):
        self.object_labels = {k.lower(): v for k, v in (object_labels or {}).items()}
        self.field_labels = {
            obj.lower(): {f.lower(): label for f, label in fields.items()}
            for obj, fields in (field_labels or {}).items()
        }

    def object_label(self, object_type: str) -> str:
        return self.object_labels.get(object_type.lower(), object_type)

    def field_label(self, object_type: str, field_name: str) -> str:
        fields = self.field_labels.get(object_type.lower(), {})
        return fields.get(field_name.lower(), field_name)

    def format(self, violation: AccessViolation) -> str:
        """Render a violation as a user-facing message."""
        obj = self.object_label(violation.object_type)
        if violation.field is None:
            return f"Insufficient access to {violation.operation.value} {obj}"
        fld = self.field_label(violation.object_type, violation.field)
        return f"Insufficient access to {violation.operation.value} field {fld} on {obj}"


class AccessDeniedError(Exception):
    """Raised when an access pre-check fails"""

    def __init__(self, violation: AccessViolation, labels: Optional[LabelRegistry] = None):
        self.violation = violation
        self.message = (labels or LabelRegistry()).format(violation)
        super().__init__(self.message)

    @property
    def operation(self) -> AccessOperation:
        return self.violation.operation

    @property
    def object_type(self) -> str:
        return self.violation.object_type

    @property
    def field(self) -> Optional[str]:
        return self.violation.field


@dataclass
class ObjectGrant:
    """
    Access granted on one object type

    Attributes:
        object_type: Object (table) name
        operations: Object-level operations allowed
        readable_fields: Fields that may be read
        creatable_fields: Fields that may be set on insert
        updateable_fields: Fields that may be set on update
    """
    object_type: str
    operations: Set[AccessOperation] = field(default_factory=set)
    readable_fields: Set[str] = field(default_factory=set)
    creatable_fields: Set[str] = field(default_factory=set)
    updateable_fields: Set[str] = field(default_factory=set)

    def allows(self, operation: AccessOperation) -> bool:
        return operation in self.operations

    def allows_field(self, operation: AccessOperation, field_name: str) -> bool:
        if operation == AccessOperation.READ:
            allowed = self.readable_fields
        elif operation == AccessOperation.CREATE:
            allowed = self.creatable_fields
        elif operation == AccessOperation.UPDATE:
            allowed = self.updateable_fields
        else:
            return False
        return field_name.lower() in {f.lower() for f in allowed}


class AccessChecker:
    """
    Evaluates object- and field-level access against declared grants.

    Unknown object types are denied. bypass() only affects the current
    context (thread or asyncio task).
    """

    def __init__(self, grants: Iterable[ObjectGrant] = (), labels: Optional[LabelRegistry] = None):
        self._grants: Dict[str, ObjectGrant] = {}
        self._bypass_depth: ContextVar[int] = ContextVar(f"access_bypass_{id(self)}", default=0)
        self.labels = labels or LabelRegistry()
        for grant in grants:
            self.add_grant(grant)

    def add_grant(self, grant: ObjectGrant) -> None:
        self._grants[grant.object_type.lower()] = grant

    @property
    def enabled(self) -> bool:
        """Whether checks are currently enforced"""
        return bool(config.get("access_checks_enabled", True)) and self._bypass_depth.get() == 0

    @contextmanager
    def bypass(self) -> Iterator[None]:
        """Skip all checks inside the block."""
        token = self._bypass_depth.set(self._bypass_depth.get() + 1)
        try:
            yield
        finally:
            self._bypass_depth.reset(token)

    def check_readable(self, object_type: str, fields: Iterable[str] = ()) -> None:
        self._check(AccessOperation.READ, object_type, fields)

    def check_insertable(self, object_type: str, fields: Iterable[str] = ()) -> None:
        self._check(AccessOperation.CREATE, object_type, fields)

    def check_updateable(self, object_type: str, fields: Iterable[str] = ()) -> None:
        self._check(AccessOperation.UPDATE, object_type, fields)

    def check_deletable(self, object_type: str) -> None:
        self._check(AccessOperation.DELETE, object_type, ())

    def _check(self, operation: AccessOperation, object_type: str, fields: Iterable[str]) -> None:
        if not self.enabled:
            return

        grant = self._grants.get(object_type.lower())
        if grant is None or not grant.allows(operation):
            self._deny(AccessViolation(operation, object_type))

        for field_name in fields:
            if not grant.allows_field(operation, field_name):
                self._deny(AccessViolation(operation, object_type, field_name))

    def _deny(self, violation: AccessViolation) -> None:
        logger.debug(
            "Access denied: %s on %s%s",
            violation.operation.value,
            violation.object_type,
            f".{violation.field}" if violation.field else "",
        )
        raise AccessDeniedError(violation, self.labels)
