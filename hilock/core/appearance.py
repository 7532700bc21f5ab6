"""
Appearance resolution for matches.

A rule's transform is an opaque callable supplied by the caller. Its
output is used verbatim: the resolver does not validate it, so an invalid
property mapping only fails when a renderer tries to paint it. Transform
authors are responsible for side effects and for returning a mapping the
renderer understands.
"""

from __future__ import annotations

from typing import Optional

from hilock.core.models import Appearance, AppearanceTransform, Rule


class AppearanceResolver:
    """Computes the final display properties of a match."""

    @staticmethod
    def resolve(
        appearance: Appearance,
        transform: Optional[AppearanceTransform] = None
    ) -> Appearance:
        """
        Resolve a base appearance.

        Args:
            appearance: Base property mapping of the rule
            transform: Optional mapping -> mapping callable

        Returns:
            The base mapping itself when there is no transform, otherwise
            the transform's return value unchanged
        """
        if transform is None:
            return appearance
        return transform(appearance)

    @classmethod
    def resolve_rule(cls, rule: Rule) -> Appearance:
        return cls.resolve(rule.appearance, rule.transform)
