"""Character-name consistency across a manuscript."""

from storylint.validators.character.validator import CharacterOptions, CharacterValidator

__all__ = ["CharacterOptions", "CharacterValidator"]
