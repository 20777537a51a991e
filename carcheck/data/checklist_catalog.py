"""
Static inspection checklist.

Section and item keys are the stable identifiers: stored checklist rows,
share links, reports and the AI prompt all refer to them, so renaming a
key is a breaking change. Titles and descriptions are display text only.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ChecklistItemDef:
    key: str
    title: str
    description: Optional[str] = None


@dataclass(frozen=True)
class ChecklistSection:
    key: str
    title: str
    icon: str
    items: tuple[ChecklistItemDef, ...]

    @property
    def item_keys(self) -> tuple[str, ...]:
        return tuple(item.key for item in self.items)


def _item(key: str, title: str, description: Optional[str] = None) -> ChecklistItemDef:
    return ChecklistItemDef(key=key, title=title, description=description)


CHECKLIST_SECTIONS: tuple[ChecklistSection, ...] = (
    ChecklistSection(
        key="documentation",
        title="Documentation",
        icon="📄",
        items=(
            _item("trafi_data_match", "Registry data matches what was advertised",
                  "Registration number, ownership history, driving bans, registration and technical data are in order."),
            _item("inspection_history", "Inspection history is in order",
                  "No failed inspections, and odometer readings are consistent."),
            _item("service_history", "Service history is documented and reliable",
                  "Services done at a dealer or a trusted workshop."),
            _item("vin_check", "VIN lookup done",
                  "Equipment, accident history and import history match what was advertised."),
            _item("type_defects_recalls", "Known defects, recalls and manufacturer campaigns checked",
                  "No material omissions."),
            _item("price_market_level", "Price matches the market level",
                  "Relative to age, mileage and equipment."),
            _item("no_commercial_use", "Car has not been used for leasing, taxi, rental or driving school"),
            _item("no_total_loss", "Car has not been redeemed by an insurer",
                  "No total loss history."),
            _item("authorized_equipment", "No unauthorized equipment",
                  "All accessories are properly registered."),
            _item("seller_verification", "Seller is a private person or a registered dealer",
                  "Details verified."),
            _item("import_car_data", "Import data in order",
                  "Not an imported car, OR import details (car tax, CO2 value, Euro class) are in order."),
            _item("electronic_service_history", "Electronic service history available",
                  "In the manufacturer's system."),
            _item("registration_certificate", "Registration certificate parts kept",
                  "Both parts (I and II) are available."),
            _item("service_book", "Service book in order",
                  "Electronic or paper, comprehensively filled in."),
            _item("service_receipts", "Service and repair invoices kept",
                  "Originals or copies."),
            _item("warranty_valid", "Warranty valid",
                  "The car or its parts have a valid warranty and its terms have been met."),
            _item("no_financing_company", "Car is not owned by a finance company",
                  "No outstanding instalment payments."),
            _item("no_usage_restrictions", "No usage restrictions",
                  "E.g. leasing or estate ownership."),
            _item("ownership_transfer_allowed", "No agreement restricts ownership transfer",
                  "E.g. leasing."),
            _item("found_in_register", "Car is found in the vehicle register"),
            _item("previous_purchase_papers", "Previous bill of sale or purchase papers available"),
            _item("not_wanted", "Car is not reported stolen",
                  "E.g. Interpol VIN register."),
        ),
    ),
    ChecklistSection(
        key="exterior",
        title="Exterior",
        icon="🚗",
        items=(
            _item("paint_condition", "Paint surface is even and flawless",
                  "No repaints or colour differences."),
            _item("body_rust_dents", "Body has no rust or dents"),
            _item("undercarriage_suspension", "Floor pan and suspension mounting points in order"),
            _item("lights_function", "Lights work and lenses are intact"),
            _item("glass_mirrors", "Glass and mirrors are intact",
                  "No cracks or damage."),
            _item("tire_condition", "Tyre tread depth sufficient",
                  "Age is known and wear is even."),
            _item("seasonal_tires", "Compliant summer and winter tyres"),
            _item("panel_gaps", "Door, bonnet and tailgate gaps are symmetrical",
                  "Correctly fitted."),
        ),
    ),
    ChecklistSection(
        key="interior",
        title="Interior",
        icon="🛋️",
        items=(
            _item("no_odors_moisture", "No odours, mould, moisture or wear in the cabin"),
            _item("seats_safety_equipment", "Seats, seat belts and safety equipment in order"),
            _item("electrical_interior_features", "All electrical interior features work",
                  "E.g. seat heaters, windows, steering wheel heater."),
        ),
    ),
    ChecklistSection(
        key="technical",
        title="Technical checks",
        icon="🔧",
        items=(
            _item("battery_tested", "Battery tested",
                  "Voltage and age are in order."),
            _item("brakes_discs", "Brakes and discs visually in order"),
            _item("alternator_belts", "Alternator and belts intact",
                  "No noise or wear detected."),
            _item("obd2_diagnostics", "OBD2 port works, fault codes read",
                  "If there are fault codes, list them in the comments with the required repairs."),
            _item("software_modifications", "Car software has not been modified",
                  "If modified, the modification is road-approved and properly registered."),
        ),
    ),
    ChecklistSection(
        key="test_drive",
        title="Test drive",
        icon="🛣️",
        items=(
            _item("transmission_function", "Transmission works in all gears",
                  "Without delays or vibration."),
            _item("driving_modes", "Driving modes work flawlessly",
                  "Eco, sport, AWD etc."),
            _item("signals_lights_driving", "Indicators and headlights work while driving"),
            _item("windows_sunroof_electric", "Windows, sunroof and electric equipment work"),
            _item("hood_doors_trunk", "Bonnet, doors and boot open and close normally"),
            _item("electric_mirrors", "Electric mirrors work and adjust correctly"),
            _item("navigation_infotainment", "Navigation and infotainment work normally"),
            _item("software_updates", "Software status checked",
                  "No pending updates found."),
            _item("handbrake_function", "Handbrake works flawlessly"),
            _item("interior_compartments", "Interior lids and compartments work"),
            _item("door_handles_locks", "Door handles and locks work on all doors"),
            _item("remote_key", "Remote key works",
                  "All of its functions tested."),
            _item("trailer_hitch", "Tow hitch works normally",
                  "Electric or mechanical."),
            _item("air_suspension", "Air suspension works normally",
                  "Responds while driving."),
        ),
    ),
    ChecklistSection(
        key="expert_review",
        title="Expert review",
        icon="🧪",
        items=(
            _item("software_updates_recalls", "All software updates and recall actions done"),
            _item("professional_inspection", "Car has been inspected by an expert",
                  "On a lift."),
        ),
    ),
    ChecklistSection(
        key="cost_estimates",
        title="Cost estimates",
        icon="💰",
        items=(
            _item("maintenance_parts_condition", "Condition of services and wear parts assessed",
                  "No immediate action required."),
            _item("usage_tax_calculated", "Vehicle usage tax calculated and known"),
            _item("insurance_costs", "Insurance premiums investigated and compared",
                  "Third party + comprehensive."),
        ),
    ),
    ChecklistSection(
        key="buyer_advice",
        title="Buyer advice",
        icon="📌",
        items=(
            _item("external_expert_present", "An outside expert took part in the inspection"),
            _item("all_keys_manuals", "All keys, manuals and service books are included"),
            _item("defects_equipment_documented", "All defects and equipment documented with photos and text"),
            _item("registration_ownership_transfer", "Registration and ownership transfer happen at the sale"),
            _item("insurance_starts_before_driving", "Insurance starts before driving off"),
            _item("written_contract", "The sale is made in writing",
                  "Bill of sale, terms of sale."),
            _item("identity_verification", "Buyer and seller identities verified",
                  "Both have the right to make the sale."),
        ),
    ),
)

_SECTIONS_BY_KEY = {section.key: section for section in CHECKLIST_SECTIONS}


def section_keys() -> list[str]:
    return [section.key for section in CHECKLIST_SECTIONS]


def get_section(section_key: str) -> Optional[ChecklistSection]:
    return _SECTIONS_BY_KEY.get(section_key)


def get_item(section_key: str, item_key: str) -> Optional[ChecklistItemDef]:
    section = get_section(section_key)
    if section is None:
        return None
    return next((item for item in section.items if item.key == item_key), None)


def total_items() -> int:
    """Catalog-wide item count, independent of what has been recorded."""
    return sum(len(section.items) for section in CHECKLIST_SECTIONS)
