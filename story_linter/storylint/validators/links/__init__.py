"""Link graph checks: broken links, orphans, anchors and link text."""

from storylint.validators.links.validator import LinkOptions, LinkValidator

__all__ = ["LinkOptions", "LinkValidator"]
