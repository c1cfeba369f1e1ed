"""Built-in validators, in registration order."""

from storylint.engine.contract import ValidatorFactory
from storylint.validators.character import CharacterValidator
from storylint.validators.links import LinkValidator

BUILTIN_VALIDATORS: list[ValidatorFactory] = [CharacterValidator, LinkValidator]

__all__ = ["BUILTIN_VALIDATORS", "CharacterValidator", "LinkValidator"]
