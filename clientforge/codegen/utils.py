import keyword
import re
import unicodedata

__all__ = (
    'lower_first',
    'make_plural',
    'make_singular',
    'print_property',
    'print_property_lower',
    'sanitize_identifier',
    'sanitize_parameter_field_name',
    'to_camel',
    'to_field_name',
    'to_lower_camel',
    'to_snake_case',
)

# Names a generated pydantic model cannot use as field names.
RESERVED_FIELD_NAMES = frozenset(
    {
        'construct',
        'copy',
        'dict',
        'json',
        'model_config',
        'model_fields',
        'schema',
        'validate',
    }
)

_SEPARATORS = frozenset('_ -.')


def remove_accents(input_str):
    nfkd_form = unicodedata.normalize('NFKD', input_str)
    return ''.join(c for c in nfkd_form if not unicodedata.combining(c))


def lower_first(text: str) -> str:
    if not text:
        return ''
    return text[0].lower() + text[1:]


def _camel(text: str, init_case: bool) -> str:
    text = text.strip()
    if not text:
        return text

    out = []
    cap_next = init_case
    prev_is_cap = False
    for i, ch in enumerate(text):
        is_cap = 'A' <= ch <= 'Z'
        is_low = 'a' <= ch <= 'z'
        if cap_next:
            if is_low:
                ch = ch.upper()
        elif i == 0:
            if is_cap:
                ch = ch.lower()
        elif prev_is_cap and is_cap:
            ch = ch.lower()
        prev_is_cap = is_cap

        if is_cap or is_low:
            out.append(ch)
            cap_next = False
        elif '0' <= ch <= '9':
            out.append(ch)
            cap_next = True
        else:
            cap_next = ch in _SEPARATORS
    return ''.join(out)


def to_camel(text: str) -> str:
    """Convert ``text`` to UpperCamelCase.

    Separators (``_``, ``-``, ``.`` and spaces) are dropped and the letter
    after them is capitalised, as is a letter following a digit. Runs of
    capitals are folded (``ID`` becomes ``Id``) so the acronym table in
    :func:`print_property` sees a single spelling.
    """
    return _camel(text, True)


def to_lower_camel(text: str) -> str:
    return _camel(text, False)


def print_property(name: str) -> str:
    """Normalize a schema, property or operation name into a type identifier.

    The result is ``to_camel(name)`` with the well known acronyms of the
    API restored (``Id`` -> ``ID``, ``Cpu`` -> ``CPU``, ...). Only the first
    matching rule applies. Names containing ``IdSortMode`` are left as they
    are.

    Example:
        >>> print_property('instance_id')
        'InstanceID'
        >>> print_property('ncpus')
        'NCPUs'
    """
    result = to_camel(name)
    if result == 'Id':
        result = 'ID'
    elif result == 'Ncpus':
        result = 'NCPUs'
    elif result == 'IpAddress':
        result = 'IPAddress'
    elif result == 'UserId':
        result = 'UserID'
    elif 'IdSortMode' in result:
        pass
    elif result.startswith('Cpu'):
        result = result.replace('Cpu', 'CPU', 1)
    elif result.startswith('Vpc'):
        result = result.replace('Vpc', 'VPC', 1)
    elif result.startswith('Vpn'):
        result = result.replace('Vpn', 'VPN', 1)
    elif result.startswith('Ipv4'):
        result = result.replace('Ipv4', 'IPv4', 1)
    elif result.startswith('Ipv6'):
        result = result.replace('Ipv6', 'IPv6', 1)
    elif result.endswith('Id'):
        result = result[: -len('Id')] + 'ID'
    elif 'Cpu' in result:
        result = result.replace('Cpu', 'CPU')
    elif result.startswith('SubnetsIps'):
        result = result.replace('SubnetsIps', 'SubnetsIPs')

    # The resource prefix is redundant once the acronym has been restored.
    result = result.replace('VPCFirewallRule', 'FirewallRule')
    result = result.replace('VPCRouter', 'Router')
    result = result.replace('VPCSubnet', 'Subnet')
    return result


def print_property_lower(name: str) -> str:
    """Lower-camel variant of :func:`print_property` (``pageToken``, ``ipv4Block``)."""
    result = to_lower_camel(print_property(name))

    for broken, fixed in (('vPC', 'vpc'), ('cPU', 'cpu'), ('iPv4', 'ipv4'), ('iPv6', 'ipv6')):
        if result.startswith(broken):
            result = fixed + result[len(broken) :]
            break

    if result == 'iD':
        result = 'id'
    elif result == 'iPAddress':
        result = 'ipAddress'
    elif result == 'iDSortMode':
        result = 'idSortMode'
    return result


def make_singular(name: str) -> str:
    if name.endswith('Status'):
        return name
    return name.removesuffix('s')


def make_plural(name: str) -> str:
    singular = make_singular(name)
    if singular.endswith('s'):
        return singular + 'es'
    return singular + 's'


def to_snake_case(name: str) -> str:
    """Convert camelCase, PascalCase, kebab-case or spaced names to snake_case.

    Example:
        >>> to_snake_case('instanceDiskAttach')
        'instance_disk_attach'
        >>> to_snake_case('IPAddress')
        'ip_address'
    """
    name = re.sub(r'[-\s.]+', '_', remove_accents(name))
    name = re.sub(r'([A-Z]+)([A-Z][a-z])', r'\1_\2', name)
    name = re.sub(r'([a-z0-9])([A-Z])', r'\1_\2', name)
    name = re.sub(r'_+', '_', name)
    return name.strip('_').lower()


def sanitize_name_python_keywords(name: str) -> str:
    if keyword.iskeyword(name):
        return f'{name}_'
    return name


def sanitize_parameter_field_name(name: str) -> str:
    """Sanitize parameter or field names to be valid Python identifiers.

    - Replace spaces and hyphens with underscores
    - Remove other invalid characters
    - Ensure it doesn't start with a digit
    - Suffix keywords and pydantic reserved names with an underscore
    """
    if not name:
        raise ValueError('Name cannot be empty')

    sanitized = re.sub(r'[-\s]+', '_', remove_accents(name))
    sanitized = re.sub(r'[^A-Za-z0-9_]', '', sanitized)

    if sanitized and sanitized[0].isdigit():
        sanitized = '_' + sanitized
    if not sanitized:
        raise ValueError(f'Name {name!r} has no valid identifier characters')

    sanitized = sanitize_name_python_keywords(sanitized)
    if sanitized in RESERVED_FIELD_NAMES:
        sanitized = f'{sanitized}_'
    return sanitized


def sanitize_identifier(name: str) -> str:
    """Convert a normalized type name into a valid Python class name.

    - Remove characters that cannot appear in an identifier
    - Ensure it doesn't start with a digit
    """
    sanitized = re.sub(r'[^A-Za-z0-9_]', '', remove_accents(name))

    if sanitized and sanitized[0].isdigit():
        sanitized = '_' + sanitized

    return sanitized or 'UnnamedType'


def to_field_name(wire_key: str) -> str:
    """Python attribute name for a wire key (``snapshot_id``, ``timeCreated``)."""
    return sanitize_parameter_field_name(to_snake_case(wire_key) or wire_key)
