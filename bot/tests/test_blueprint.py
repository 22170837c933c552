from __future__ import annotations

from collections import Counter

import discord
import pytest

from services import blueprint
from utils.embeds import chunked_field_embeds


def test_blueprint_sizes() -> None:
    assert len(blueprint.ROLES) == 13
    assert len(blueprint.CATEGORIES) == 7
    assert len(blueprint.CHANNELS) == 36


def test_keys_are_unique_and_categories_exist() -> None:
    for specs in (blueprint.ROLES, blueprint.CATEGORIES, blueprint.CHANNELS):
        counts = Counter(spec.key for spec in specs)
        assert max(counts.values()) == 1
    category_keys = {spec.key for spec in blueprint.CATEGORIES}
    assert {spec.category for spec in blueprint.CHANNELS} <= category_keys


def test_ticket_category_holds_only_the_menu() -> None:
    channels = [spec for spec in blueprint.CHANNELS if spec.category == blueprint.TICKET_CATEGORY_KEY]

    assert [spec.key for spec in channels] == [blueprint.TICKET_CREATE_CHANNEL_KEY]


def test_role_permissions_are_known_flags() -> None:
    for spec in blueprint.ROLES:
        discord.Permissions(**{name: True for name in spec.permissions})


def test_private_categories_reference_real_roles() -> None:
    role_keys = {spec.key for spec in blueprint.ROLES}
    private = [spec for spec in blueprint.CATEGORIES if spec.is_private]

    assert {spec.key for spec in private} == {"staff_area", "logs"}
    for spec in private:
        assert set(spec.visible_to) <= role_keys


def test_rules_split_three_fields_per_embed() -> None:
    embeds = chunked_field_embeds(
        blueprint.RULES,
        title=blueprint.RULES_TITLE,
        footer=blueprint.RULES_FOOTER,
        per_embed=blueprint.RULES_FIELDS_PER_EMBED,
    )

    assert [len(embed.fields) for embed in embeds] == [3, 3, 2]
    assert embeds[0].title == blueprint.RULES_TITLE
    assert embeds[1].title is None
    assert embeds[0].footer.text is None
    assert embeds[-1].footer.text == blueprint.RULES_FOOTER
    assert embeds[0].fields[0].value.startswith("- ")


def test_chunking_rejects_empty_pages() -> None:
    with pytest.raises(ValueError):
        chunked_field_embeds(blueprint.RULES, title="t", footer="f", per_embed=0)
