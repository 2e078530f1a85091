# kemetic_mirror/mirror_engine/overlay/catalog.py
from typing import Dict, Optional

from pydantic import BaseModel

from .variants import OverlayVariant


class Accessory(BaseModel):
    """Display metadata for one overlay variant."""
    variant: OverlayVariant
    name: str
    kind: str
    description: str
    historical_snippet: str
    hotkey: str


ACCESSORIES: Dict[OverlayVariant, Accessory] = {
    accessory.variant: accessory
    for accessory in (
        Accessory(
            variant=OverlayVariant.HEADDRESS_STRIPED,
            name="Nemes Headdress",
            kind="HEAD",
            description="The royal striped headcloth.",
            historical_snippet=(
                "The Nemes was a striped headcloth worn by pharaohs, symbolizing their power. It was often "
                "made of gold and lapis lazuli to represent the flesh and hair of the gods."
            ),
            hotkey="1",
        ),
        Accessory(
            variant=OverlayVariant.HEADDRESS_CROWN,
            name="Cap Crown",
            kind="HEAD",
            description="Tall blue crown of Queen Nefertiti.",
            historical_snippet=(
                "This unique flat-topped blue crown is famously associated with Queen Nefertiti. Its height "
                "and shape emphasized her status as a goddess-queen equal to the Pharaoh."
            ),
            hotkey="2",
        ),
        Accessory(
            variant=OverlayVariant.COLLAR,
            name="Usekh Collar",
            kind="NECK",
            description="Broad ornamental collar.",
            historical_snippet=(
                "The Usekh collar was a broad collar worn by the elite, made of rows of beads. It was believed "
                "to offer protection and was often placed on mummies to guard them in the afterlife."
            ),
            hotkey="3",
        ),
        Accessory(
            variant=OverlayVariant.FACIAL_PAINT,
            name="Kohl & Paint",
            kind="FACE",
            description="Protective eye makeup.",
            historical_snippet=(
                "Both men and women wore kohl (galena) around their eyes. While beautiful, it also protected "
                "the eyes from the intense sun and desert infections."
            ),
            hotkey="4",
        ),
        Accessory(
            variant=OverlayVariant.FULL_MASK,
            name="Jackal Mask",
            kind="FULL",
            description="Mask of the Guardian.",
            historical_snippet=(
                "Priests would wear masks of Anubis during mummification rituals to impersonate the god of "
                "the dead, ensuring the safe passage of the soul."
            ),
            hotkey="5",
        ),
    )
}


def accessory_for(variant: OverlayVariant) -> Optional[Accessory]:
    return ACCESSORIES.get(OverlayVariant(variant))


def variant_for_hotkey(key: str) -> Optional[OverlayVariant]:
    if key == "0":
        return OverlayVariant.NONE
    for accessory in ACCESSORIES.values():
        if accessory.hotkey == key:
            return accessory.variant
    return None
