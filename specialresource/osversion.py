"""Render node operating system versions from NFD labels."""


def render_operating_system(rel, major, minor):
    """Return (<name><major>, <name><major>.<minor>, <major>.<minor>).

    For RHCOS 4 nodes the RHEL release the image is based on is returned.
    Minor versions are compared as strings.
    """
    if rel == "rhcos" and major == "4":
        rhel_major = "8"
        rhel_minor = ""
        if minor <= "3":
            rhel_minor = "0"
        elif minor == "4":
            rhel_minor = "1"
        elif minor <= "6":
            rhel_minor = "2"
        elif minor <= "7":
            rhel_minor = "4"
        elif minor <= "8":
            rhel_minor = "4"
        return (
            "rhel" + rhel_major,
            "rhel" + rhel_major + "." + rhel_minor,
            rhel_major + "." + rhel_minor,
        )
    if minor == "":
        return rel + major, rel + major, major
    return rel + major, rel + major + "." + minor, major + "." + minor