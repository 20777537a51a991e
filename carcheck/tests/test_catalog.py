from carcheck.data.checklist_catalog import (
    CHECKLIST_SECTIONS,
    get_item,
    get_section,
    section_keys,
    total_items,
)


def test_sections_in_display_order():
    assert section_keys() == [
        "documentation",
        "exterior",
        "interior",
        "technical",
        "test_drive",
        "expert_review",
        "cost_estimates",
        "buyer_advice",
    ]


def test_item_keys_unique_within_each_section():
    for section in CHECKLIST_SECTIONS:
        assert len(section.item_keys) == len(set(section.item_keys)), section.key


def test_total_items_is_sum_of_sections():
    assert total_items() == sum(len(s.items) for s in CHECKLIST_SECTIONS)
    assert total_items() == 64


def test_lookup_helpers():
    assert get_section("documentation").title == "Documentation"
    assert get_item("documentation", "vin_check").title == "VIN lookup done"
    assert get_section("nope") is None
    assert get_item("documentation", "nope") is None
    assert get_item("nope", "vin_check") is None
