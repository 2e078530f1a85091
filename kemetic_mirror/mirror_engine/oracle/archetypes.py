# kemetic_mirror/mirror_engine/oracle/archetypes.py
from enum import Enum
from typing import Dict

from pydantic import BaseModel


class ArchetypeId(str, Enum):
    PHARAOH = "PHARAOH"
    QUEEN = "QUEEN"
    ANUBIS = "ANUBIS"
    PRIEST = "PRIEST"
    WARRIOR = "WARRIOR"


class Archetype(BaseModel):
    """A costume the generative service dresses the user in."""
    id: ArchetypeId
    name: str
    description: str
    prompt_modifier: str


ARCHETYPES: Dict[ArchetypeId, Archetype] = {
    archetype.id: archetype
    for archetype in (
        Archetype(
            id=ArchetypeId.PHARAOH,
            name="The Pharaoh",
            description="Ruler of the Two Lands, adorned in gold and the Nemes headdress.",
            prompt_modifier=(
                "dressed as a powerful Ancient Egyptian Pharaoh wearing a golden Nemes headdress, a ceremonial "
                "false beard, and an ornate collar. Cinematic lighting, golden aura, photorealistic, royal "
                "palace background."
            ),
        ),
        Archetype(
            id=ArchetypeId.QUEEN,
            name="Nile Queen",
            description="Divine feminine power, echoing the style of Nefertiti or Cleopatra.",
            prompt_modifier=(
                "dressed as an Ancient Egyptian Queen like Nefertiti, wearing a tall blue crown (Khepresh) or "
                "vulture crown, ornate gold jewelry, bold kohl eyeliner, and fine linen. Elegant, regal, "
                "limestone temple background."
            ),
        ),
        Archetype(
            id=ArchetypeId.ANUBIS,
            name="Avatar of Anubis",
            description="The jackal-headed guide of the underworld.",
            prompt_modifier=(
                "wearing a black and gold ceremonial headdress inspired by Anubis with jackal ears and gold "
                "ornaments. The person has mystical dark eye makeup and gold geometric face paint. The human "
                "face is visible and blended with the Anubis aesthetic. Dark mysterious underworld atmosphere, "
                "torchlight."
            ),
        ),
        Archetype(
            id=ArchetypeId.PRIEST,
            name="High Priest",
            description="Keeper of sacred mysteries and magical rituals.",
            prompt_modifier=(
                "dressed as an Ancient Egyptian High Priest, bald head, leopard skin drape over white linen "
                "robes, holding a gold ankh. Mystical energy, incense smoke, temple sanctuary background."
            ),
        ),
        Archetype(
            id=ArchetypeId.WARRIOR,
            name="Medjay Warrior",
            description="Elite protector of the Pharaoh.",
            prompt_modifier=(
                "dressed as an elite Egyptian Medjay warrior, wearing leather armor, holding a khopesh sword, "
                "desert sand background, intense dramatic lighting, heroic pose."
            ),
        ),
    )
}
