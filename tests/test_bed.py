import pytest

from bed_sim.bed import BedRegistry, BedStatus, Occupant, bed_number, default_ward_of, make_default_ward_of
from bed_sim.errors import BedNotFound, InvalidTransition

from conftest import TODAY


def test_initialize_groups_five_beds_per_ward(registry):
    beds = registry.list()
    assert len(beds) == 20
    assert [b.bed_id for b in beds[:2]] == ["bed-1", "bed-2"]
    assert beds[0].number == "1A"
    assert beds[4].number == "1E"
    assert beds[5].number == "2A"
    assert beds[0].ward == "Ward 1"
    assert beds[19].ward == "Ward 4"
    assert all(b.status == BedStatus.AVAILABLE and b.occupant is None for b in beds)


def test_custom_ward_function():
    reg = BedRegistry.initialize(6, ward_of=lambda i: "ICU" if i < 2 else "General")
    assert reg.ward_summary() == {
        "ICU": {"total": 2, "occupied": 0, "available": 2, "maintenance": 0},
        "General": {"total": 4, "occupied": 0, "available": 4, "maintenance": 0},
    }


def test_ward_grouping_follows_beds_per_ward():
    reg = BedRegistry.initialize(8, beds_per_ward=4)
    assert [(b.number, b.ward) for b in reg.list()] == [
        ("1A", "Ward 1"), ("1B", "Ward 1"), ("1C", "Ward 1"), ("1D", "Ward 1"),
        ("2A", "Ward 2"), ("2B", "Ward 2"), ("2C", "Ward 2"), ("2D", "Ward 2"),
    ]


def test_helpers():
    assert bed_number(7) == "2C"
    assert default_ward_of(5) == "Ward 2"
    assert make_default_ward_of(3)(3) == "Ward 2"
    with pytest.raises(ValueError):
        make_default_ward_of(0)


def test_get_unknown_bed(registry):
    with pytest.raises(BedNotFound):
        registry.get("bed-99")


def test_occupied_requires_occupant(registry):
    with pytest.raises(InvalidTransition):
        registry.set_status("bed-1", BedStatus.OCCUPIED)
    assert registry.get("bed-1").status == BedStatus.AVAILABLE


@pytest.mark.parametrize("status", [BedStatus.AVAILABLE, BedStatus.MAINTENANCE])
def test_non_occupied_rejects_occupant(registry, status):
    with pytest.raises(InvalidTransition):
        registry.set_status("bed-1", status, occupant_name="Someone")


def test_occupied_stamps_dates_and_leaving_clears(registry):
    bed = registry.set_status("bed-3", BedStatus.OCCUPIED, "Budi Santoso", today=TODAY)
    assert bed.status == BedStatus.OCCUPIED
    assert bed.occupant == Occupant("Budi Santoso", "2026-10-18", "2026-10-21")

    bed = registry.set_status("bed-3", BedStatus.MAINTENANCE)
    assert bed.occupant is None
    assert bed.to_dict()["admission_date"] is None


def test_list_available_keeps_registry_order(registry):
    registry.set_status("bed-2", BedStatus.MAINTENANCE)
    registry.set_status("bed-4", BedStatus.OCCUPIED, "X", today=TODAY)
    ids = [b.bed_id for b in registry.list_available()]
    assert ids[:3] == ["bed-1", "bed-3", "bed-5"]
    assert len(ids) == 18


def test_ward_summary_is_recomputed(registry):
    assert registry.ward_summary()["Ward 1"]["available"] == 5
    registry.set_status("bed-1", BedStatus.OCCUPIED, "X", today=TODAY)
    registry.set_status("bed-2", BedStatus.MAINTENANCE)
    w1 = registry.ward_summary()["Ward 1"]
    assert w1 == {"total": 5, "occupied": 1, "available": 3, "maintenance": 1}


def test_returned_beds_are_copies(registry):
    bed = registry.get("bed-1")
    bed.status = BedStatus.MAINTENANCE
    assert registry.get("bed-1").status == BedStatus.AVAILABLE


def test_restore_status_rejects_mismatch(registry):
    with pytest.raises(InvalidTransition):
        registry.restore_status("bed-1", BedStatus.OCCUPIED, None)


def test_initial_statuses_from_caller():
    reg = BedRegistry.initialize(3, statuses=lambda i: BedStatus.MAINTENANCE if i == 0 else BedStatus.AVAILABLE)
    assert reg.counts() == {"available": 2, "occupied": 0, "maintenance": 1}
    with pytest.raises(InvalidTransition):
        BedRegistry.initialize(2, statuses=lambda i: BedStatus.OCCUPIED)
