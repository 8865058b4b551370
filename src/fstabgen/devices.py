"""Resolve fstab device specifiers (LABEL=, UUID=, ...) to udev symlink paths."""

_TAGS = (
    ("LABEL=", "label"),
    ("UUID=", "uuid"),
    ("PARTUUID=", "partuuid"),
    ("PARTLABEL=", "partlabel"),
)


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def _xescape(value: str, bad: str) -> str:
    out = []
    for c in value:
        if c in bad or c == "\\" or ord(c) < 0x20 or ord(c) >= 0x7f:
            out.append("".join(f"\\x{b:02x}" for b in c.encode("utf-8", "surrogateescape")))
        else:
            out.append(c)
    return "".join(out)


def tag_to_udev_node(value: str, by: str) -> str:
    return f"/dev/disk/by-{by}/{_xescape(_unquote(value), '/ ')}"


def fstab_node_to_udev_node(node: str) -> str:
    """Map a tagged specifier to /dev/disk/by-*/...; anything else is returned as is."""
    for prefix, by in _TAGS:
        if node.startswith(prefix):
            return tag_to_udev_node(node[len(prefix):], by)
    return node
