"""
Report categories and the storage folder each one is written to
"""
import enum
from typing import Union


class ArtifactCategory(str, enum.Enum):
    """Report types that produce a PDF in the project folder"""
    PROCTOR = "PROCTOR"
    DENSITY_MEASUREMENT = "DENSITY_MEASUREMENT"
    COMPRESSIVE_STRENGTH = "COMPRESSIVE_STRENGTH"
    WP1 = "WP1"
    REBAR = "REBAR"
    CYLINDER_PICKUP = "CYLINDER_PICKUP"


# Folder name == label used inside the filename
CATEGORY_FOLDERS = {
    ArtifactCategory.PROCTOR: "Proctor",
    ArtifactCategory.DENSITY_MEASUREMENT: "Density",
    ArtifactCategory.COMPRESSIVE_STRENGTH: "CompressiveStrength",
    ArtifactCategory.WP1: "CompressiveStrength",  # WP1 is a compressive strength report
    ArtifactCategory.REBAR: "Rebar",
    ArtifactCategory.CYLINDER_PICKUP: "CylinderPickup",
}


def coerce_category(value: Union[ArtifactCategory, str]) -> ArtifactCategory:
    """
    Accepts the enum, its value ("DENSITY_MEASUREMENT") or a folder label ("Density")

    Raises:
        ValueError: unknown category
    """
    if isinstance(value, ArtifactCategory):
        return value
    try:
        return ArtifactCategory(value.strip().upper())
    except ValueError:
        pass
    for category, folder in CATEGORY_FOLDERS.items():
        if folder.lower() == value.strip().lower():
            return category
    raise ValueError(f"Unknown report category: {value!r}")


def category_folder(category: Union[ArtifactCategory, str]) -> str:
    return CATEGORY_FOLDERS[coerce_category(category)]


def all_category_folders() -> list:
    """Distinct folder names, in declaration order"""
    return list(dict.fromkeys(CATEGORY_FOLDERS.values()))
