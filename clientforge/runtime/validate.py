"""Argument validation of the generated operation functions."""

import ipaddress
import re
import uuid
from collections.abc import Iterable
from email.utils import parseaddr
from urllib.parse import urlparse

_HOSTNAME = re.compile(
    r'^[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?'
    r'(\.[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$'
)


class ValidationError(ValueError):
    """One or more arguments of an API call are invalid.

    Attributes:
        errors: Every validation message, in the order found.
    """

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__('\n'.join(self.errors))


class Validator:
    """Collects argument validation errors.

    Every check returns whether it passed and records a message when it
    did not; :meth:`raise_if_invalid` reports all of them at once.

    Example:
        >>> validator = Validator()
        >>> validator.has_required_str(project, 'project')
        >>> validator.raise_if_invalid()
    """

    def __init__(self):
        self._errors: list[str] = []

    @property
    def errors(self) -> list[str]:
        return list(self._errors)

    def is_valid(self) -> bool:
        return not self._errors

    def add_error(self, message: str) -> None:
        self._errors.append(message)

    def _fail(self, message: str) -> bool:
        self.add_error(message)
        return False

    def has_required_str(self, value: str | None, name: str) -> bool:
        if value is None or value == '':
            return self._fail(f'required value for {name} is an empty string')
        return True

    def has_required_num(self, value: float | None, name: str) -> bool:
        if value is None:
            return self._fail(f'required value for {name} is nil')
        return True

    def has_required_obj(self, value: object, name: str) -> bool:
        if value is None:
            return self._fail(f'required value for {name} is nil')
        return True

    def matches_pattern(self, value: str | None, pattern: str, name: str) -> bool:
        """Empty values pass; required checks report them."""
        if not value:
            return True
        try:
            matched = re.search(pattern, value)
        except re.error as e:
            return self._fail(f'invalid pattern for {name}: {e}')
        if matched is None:
            return self._fail(f'{name} must match pattern {pattern}')
        return True

    def valid_enum(self, value: object, allowed: Iterable[object], name: str) -> bool:
        if value in list(allowed):
            return True
        return self._fail(f'{name} has invalid value {value}')

    def valid_format(self, value: str | None, format: str, name: str) -> bool:
        """Check ``value`` against a string format; unknown formats pass."""
        if not value:
            return True

        match format:
            case 'uuid':
                try:
                    uuid.UUID(value)
                except ValueError as e:
                    return self._fail(f'{name} must be a valid UUID: {e}')
            case 'email':
                _, address = parseaddr(value)
                if '@' not in address:
                    return self._fail(f'{name} must be a valid email address')
            case 'uri' | 'url':
                parsed = urlparse(value)
                if not parsed.scheme and not value.startswith('/'):
                    return self._fail(f'{name} must be a valid URI')
            case 'ipv4':
                if not _is_ip(value, 4):
                    return self._fail(f'{name} must be a valid IPv4 address')
            case 'ipv6':
                if not _is_ip(value, 6):
                    return self._fail(f'{name} must be a valid IPv6 address')
            case 'ip':
                if not _is_ip(value):
                    return self._fail(f'{name} must be a valid IP address')
            case 'hostname':
                if len(value) > 253 or not _HOSTNAME.match(value):
                    return self._fail(f'{name} must be a valid hostname')
        return True

    def raise_if_invalid(self) -> None:
        """Raise a :class:`ValidationError` joining every recorded message."""
        if self._errors:
            raise ValidationError(self._errors)


def _is_ip(value: str, version: int | None = None) -> bool:
    try:
        address = ipaddress.ip_address(value)
    except ValueError:
        return False
    return version is None or address.version == version
