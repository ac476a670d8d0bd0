"""Default location of VRChat's log directory."""

import sys
from pathlib import Path
from typing import Optional

# Steam app id of VRChat, used for the Proton prefix
VRCHAT_APP_ID = "438100"


def get_vrchat_log_dir(
    platform: str = sys.platform, home: Optional[Path] = None
) -> Path:
    """Return the directory VRChat writes output_log_*.txt files to.

    On Windows this is LocalLow under the user profile. Elsewhere VRChat runs
    through Steam's Proton, so the same folder lives inside the app's prefix.
    """
    home = home if home is not None else Path.home()
    local_low = Path("AppData", "LocalLow", "VRChat", "VRChat")

    if platform == "win32":
        return home / local_low

    return (
        home
        / ".steam"
        / "steam"
        / "steamapps"
        / "compatdata"
        / VRCHAT_APP_ID
        / "pfx"
        / "drive_c"
        / "users"
        / "steamuser"
        / local_low
    )
