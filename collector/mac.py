"""
MAC address helpers

MAC addresses are handled as lowercase, colon separated strings
(``aa:bb:cc:dd:ee:ff``) throughout the project.
"""

import re

_HEX12 = re.compile(r'^[0-9a-f]{12}$')


def normalize_mac(text: str) -> str:
    """
    Normalise a MAC address to lowercase colon form.

    Accepts ``aa:bb:cc:dd:ee:ff``, ``aa-bb-cc-dd-ee-ff``,
    ``aabb.ccdd.eeff`` and ``aabbccddeeff``.

    Raises:
        ValueError: If text is not a MAC address
    """
    raw = text.strip().lower()

    if len(raw) == 17 and raw[2] in ':-':
        sep = raw[2]
        groups = raw.split(sep)
        if len(groups) != 6 or any(len(g) != 2 for g in groups):
            raise ValueError(f"Invalid MAC address: {text!r}")
        digits = "".join(groups)
    elif len(raw) == 14 and raw[4] == '.' and raw[9] == '.':
        digits = raw.replace('.', '')
    else:
        digits = raw

    if not _HEX12.match(digits):
        raise ValueError(f"Invalid MAC address: {text!r}")

    return ":".join(digits[i:i + 2] for i in range(0, 12, 2))


def is_valid_mac(mac: str) -> bool:
    """
    True for universally administered unicast addresses.

    Multicast addresses have the least significant bit of the first octet
    set, locally administered ones the second least significant bit.
    """
    try:
        first_octet = int(normalize_mac(mac)[:2], 16)
    except ValueError:
        return False

    return not (first_octet & 0x01) and not (first_octet & 0x02)
