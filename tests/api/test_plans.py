"""Dental plan endpoint and plan configuration tests"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from dental_admin.models.plans import DentalPlan

pytestmark = pytest.mark.api


def benefit_ids(plan: dict, class_id: str) -> list:
    cls = next(c for c in plan["classes"] if c["id"] == class_id)
    return [b["id"] for b in cls["benefits"]]


def limit_for(plan: dict, benefit_id: str) -> dict:
    return next(limit for limit in plan["limits"] if limit["benefitId"] == benefit_id)


def grid_row(grid: dict, class_id: str, benefit_id: str) -> dict:
    cls = next(c for c in grid["classes"] if c["classId"] == class_id)
    return next(b for b in cls["benefits"] if b["benefitId"] == benefit_id)


def move(client: TestClient, plan_id: str, benefit_id: str, from_class_id: str, to_class_id: str):
    return client.post(
        f"/plans/{plan_id}/benefits/move",
        json={"benefitId": benefit_id, "fromClassId": from_class_id, "toClassId": to_class_id},
    )


def set_class_default(client: TestClient, plan_id: str, class_id: str, cost_share_type: str, **values):
    response = client.put(
        f"/plans/{plan_id}/cost-shares/type",
        json={"classId": class_id, "coverageType": "Adult", "costShareType": cost_share_type},
    )
    assert response.status_code == 200
    for field_name, value in values.items():
        response = client.put(
            f"/plans/{plan_id}/cost-shares/value",
            json={"classId": class_id, "coverageType": "Adult", "field": field_name, "value": value},
        )
        assert response.status_code == 200
    return response.json()


class TestPlanLifecycle:
    """Create, read, update and delete plans"""

    def test_create_plan(self, client: TestClient, create_structures, sample_plan_data: dict):
        """Test a new plan starts from a copy of its structures."""
        class_document, limit_document = create_structures()
        payload = {
            **sample_plan_data,
            "classStructureId": class_document["_id"],
            "limitStructureId": limit_document["_id"],
        }

        response = client.post("/plans/", json=payload)

        assert response.status_code == 201
        data = response.json()
        assert data["name"] == sample_plan_data["name"]
        assert data["innTiers"] == 2
        assert data["classStructureName"] == class_document["name"]
        assert data["limitStructureName"] == limit_document["name"]
        assert data["classes"] == class_document["classes"]
        assert len(data["limits"]) == 2
        assert data["costShares"] == []
        assert data["configurationDirty"] is False
        assert data["createdBy"] == "unit-test"

    def test_create_plan_without_limit_structure(self, client: TestClient, create_structures,
                                                 sample_plan_data: dict):
        """Test the limit structure is optional."""
        class_document, _ = create_structures()

        response = client.post("/plans/", json={**sample_plan_data, "classStructureId": class_document["_id"]})

        assert response.status_code == 201
        assert response.json()["limits"] == []
        assert response.json()["limitStructureId"] is None

    def test_create_plan_incompatible_class_structure(self, client: TestClient, create_structures,
                                                      sample_plan_data: dict):
        """Test the class structure must match the plan's date, segment and product."""
        class_document, _ = create_structures()
        payload = {**sample_plan_data, "effectiveDate": "2025-02-01", "classStructureId": class_document["_id"]}

        response = client.post("/plans/", json=payload)

        assert response.status_code == 422
        assert "Class structure does not match" in response.json()["error"]

    def test_create_plan_missing_class_structure(self, client: TestClient, sample_plan_data: dict):
        """Test the class structure must exist."""
        response = client.post("/plans/", json={**sample_plan_data, "classStructureId": "missing"})

        assert response.status_code == 404
        assert response.json()["error"] == "Class structure missing not found"

    def test_create_plan_invalid_tiers(self, client: TestClient, create_structures, sample_plan_data: dict):
        """Test in-network tiers are 1, 2 or 3."""
        class_document, _ = create_structures()
        payload = {**sample_plan_data, "innTiers": 4, "classStructureId": class_document["_id"]}

        response = client.post("/plans/", json=payload)

        assert response.status_code == 422

    def test_list_plans(self, client: TestClient, plan: dict):
        """Test listing plans with filters."""
        response = client.get("/plans/")
        assert response.status_code == 200
        assert [item["_id"] for item in response.json()] == [plan["_id"]]

        response = client.get("/plans/", params={"productType": "DHMO"})
        assert response.json() == []

    def test_get_plan(self, client: TestClient, plan: dict):
        """Test getting a plan."""
        response = client.get(f"/plans/{plan['_id']}")
        assert response.status_code == 200
        assert response.json()["name"] == plan["name"]

    def test_get_plan_not_found(self, client: TestClient):
        """Test getting a plan that does not exist."""
        response = client.get("/plans/missing")
        assert response.status_code == 404
        assert response.json()["error"] == "Plan missing not found"

    def test_update_plan(self, client: TestClient, plan: dict):
        """Test updating plan header fields."""
        response = client.put(f"/plans/{plan['_id']}", json={"name": "Renamed Plan", "oonCoverage": False})

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Renamed Plan"
        assert data["oonCoverage"] is False
        assert data["innTiers"] == 2

    def test_delete_plan(self, client: TestClient, plan: dict):
        """Test deleting a plan leaves its structures in place."""
        assert client.delete(f"/plans/{plan['_id']}").status_code == 204
        assert client.get(f"/plans/{plan['_id']}").status_code == 404
        assert client.get(f"/class-structures/{plan['classStructureId']}").status_code == 200

    def test_operation_on_missing_plan(self, client: TestClient):
        """Test configuration operations need an existing plan."""
        response = move(client, "missing", "D0120", "c1", "c2")
        assert response.status_code == 404


class TestBenefitMoves:
    """Click-to-move, reorder and drag gestures"""

    def test_move_benefit(self, client: TestClient, plan: dict):
        """Test a moved benefit is appended to the destination class."""
        response = move(client, plan["_id"], "D0120", "c1", "c2")

        assert response.status_code == 200
        data = response.json()
        assert data["applied"] is True
        assert benefit_ids(data["plan"], "c1") == ["D1110", "D0274"]
        assert benefit_ids(data["plan"], "c2") == ["D2140", "D0120"]
        assert data["plan"]["configurationDirty"] is True

    def test_move_to_same_class_is_noop(self, client: TestClient, plan: dict):
        """Test moving a benefit to its own class changes nothing."""
        data = move(client, plan["_id"], "D0120", "c1", "c1").json()

        assert data["applied"] is False
        assert data["plan"]["classes"] == plan["classes"]
        assert data["plan"]["configurationDirty"] is False

    def test_stale_move_is_noop(self, client: TestClient, plan: dict):
        """Test a move naming the wrong source class changes nothing."""
        data = move(client, plan["_id"], "D0120", "c2", "c1").json()

        assert data["applied"] is False
        assert data["plan"]["classes"] == plan["classes"]

    def test_move_keeps_limit(self, client: TestClient, plan: dict):
        """Test a benefit's limit survives a move unchanged."""
        data = move(client, plan["_id"], "D1110", "c1", "c2").json()["plan"]

        limit = limit_for(data, "D1110")
        assert limit["quantity"] == 2
        assert limit["classId"] == "c2"
        assert limit["className"] == "Class 2"
        assert len(data["limits"]) == 2

    def test_moved_benefit_inherits_destination_default(self, client: TestClient, plan: dict):
        """Test a moved benefit shows the destination class default."""
        set_class_default(client, plan["_id"], "c2", "COPAY", copayAmount=20)
        move(client, plan["_id"], "D0120", "c1", "c2")

        grid = client.get(f"/plans/{plan['_id']}/grid", params={"tier": 0, "coverage": "Adult"}).json()

        row = grid_row(grid, "c2", "D0120")
        assert row["costShare"]["source"] == "class_default"
        assert row["costShare"]["costShareType"] == "COPAY"
        assert row["costShare"]["values"] == {"copayAmount": 20}
        assert row["costShare"]["label"] == "Copay Only: $20"

    def test_moved_override_takes_destination_default(self, client: TestClient, plan: dict):
        """Test a benefit's own cost share is replaced by the destination default on move."""
        set_class_default(client, plan["_id"], "c2", "COPAY", copayAmount=20)
        client.put(
            f"/plans/{plan['_id']}/cost-shares/type",
            json={"classId": "c1", "benefitId": "D0120", "coverageType": "Adult", "costShareType": "COINSURANCE"},
        )

        data = move(client, plan["_id"], "D0120", "c1", "c2").json()["plan"]

        records = [r for r in data["costShares"] if r["benefitId"] == "D0120"]
        assert len(records) == 1
        assert records[0]["classId"] == "c2"
        assert records[0]["costShareType"] == "COPAY"
        assert records[0]["values"] == {"copayAmount": 20}

    def test_reorder_within_class(self, client: TestClient, plan: dict):
        """Test placing a benefit before another in the same class."""
        response = client.post(
            f"/plans/{plan['_id']}/benefits/reorder",
            json={"classId": "c1", "benefitId": "D0274", "beforeBenefitId": "D0120"},
        )

        assert response.json()["applied"] is True
        assert benefit_ids(response.json()["plan"], "c1") == ["D0274", "D0120", "D1110"]

    def test_reorder_across_classes_is_noop(self, client: TestClient, plan: dict):
        """Test a reorder anchor from another class changes nothing."""
        response = client.post(
            f"/plans/{plan['_id']}/benefits/reorder",
            json={"classId": "c1", "benefitId": "D0120", "beforeBenefitId": "D2140"},
        )

        assert response.json()["applied"] is False

    def test_drag_end_outside_targets(self, client: TestClient, plan: dict):
        """Test a drag dropped on nothing changes nothing."""
        response = client.post(
            f"/plans/{plan['_id']}/benefits/drag-end",
            json={"active": {"classId": "c1", "benefitId": "D1110"}, "over": None},
        )

        assert response.status_code == 200
        assert response.json()["applied"] is False

    def test_drag_end_on_other_class(self, client: TestClient, plan: dict):
        """Test dropping on another class header moves the benefit."""
        response = client.post(
            f"/plans/{plan['_id']}/benefits/drag-end",
            json={"active": {"classId": "c1", "benefitId": "D1110"}, "over": {"classId": "c2"}},
        )

        assert response.json()["applied"] is True
        assert benefit_ids(response.json()["plan"], "c2") == ["D2140", "D1110"]

    def test_drag_end_on_sibling(self, client: TestClient, plan: dict):
        """Test dropping on a benefit of the same class reorders."""
        response = client.post(
            f"/plans/{plan['_id']}/benefits/drag-end",
            json={"active": {"classId": "c1", "benefitId": "D0274"}, "over": {"classId": "c1", "benefitId": "D1110"}},
        )

        assert benefit_ids(response.json()["plan"], "c1") == ["D0120", "D0274", "D1110"]

    def test_drag_end_on_own_class_header(self, client: TestClient, plan: dict):
        """Test dropping on the benefit's own class header moves it last."""
        response = client.post(
            f"/plans/{plan['_id']}/benefits/drag-end",
            json={"active": {"classId": "c1", "benefitId": "D0120"}, "over": {"classId": "c1"}},
        )

        assert response.json()["applied"] is True
        assert benefit_ids(response.json()["plan"], "c1") == ["D1110", "D0274", "D0120"]


class TestAddAndRemove:
    """Adding catalog benefits to classes and removing them"""

    def test_add_benefit(self, client: TestClient, plan: dict):
        """Test adding a catalog benefit seeds its cost share."""
        response = client.post(
            f"/plans/{plan['_id']}/benefits/add",
            json={"classId": "c2", "benefitId": "D2330", "coverageType": "Adult"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["applied"] is True
        assert benefit_ids(data["plan"], "c2") == ["D2140", "D2330"]
        assert data["plan"]["costShares"] == [{
            "classId": "c2",
            "benefitId": "D2330",
            "networkTier": 0,
            "coverageType": "Adult",
            "costShareType": "COINSURANCE",
            "values": {"coinsurancePercentage": 20},
        }]

    def test_add_assigned_benefit_is_noop(self, client: TestClient, plan: dict):
        """Test a benefit already in a class cannot be added to another."""
        response = client.post(f"/plans/{plan['_id']}/benefits/add", json={"classId": "c2", "benefitId": "D0120"})

        assert response.json()["applied"] is False
        assert benefit_ids(response.json()["plan"], "c2") == ["D2140"]

    def test_add_unknown_benefit(self, client: TestClient, plan: dict):
        """Test a benefit outside the catalog needs a name."""
        response = client.post(f"/plans/{plan['_id']}/benefits/add", json={"classId": "c2", "benefitId": "X0001"})
        assert response.status_code == 404

        response = client.post(
            f"/plans/{plan['_id']}/benefits/add",
            json={"classId": "c2", "benefitId": "X0001", "benefitName": "Custom Service"},
        )
        assert response.json()["applied"] is True

    def test_add_with_tier_outside_plan(self, client: TestClient, plan: dict):
        """Test the seeded cost share must target a tier the plan offers."""
        response = client.post(
            f"/plans/{plan['_id']}/benefits/add",
            json={"classId": "c2", "benefitId": "D2330", "networkTier": 3},
        )

        assert response.status_code == 422
        assert "Network tier 3 is outside the plan's 3 tier(s)" in response.json()["error"]

    def test_remove_benefit(self, client: TestClient, plan: dict):
        """Test removing a benefit keeps its limit."""
        response = client.post(
            f"/plans/{plan['_id']}/benefits/remove",
            json={"classId": "c1", "benefitId": "D0274"},
        )

        data = response.json()
        assert data["applied"] is True
        assert benefit_ids(data["plan"], "c1") == ["D0120", "D1110"]
        assert limit_for(data["plan"], "D0274")["quantity"] == 1


class TestCostShares:
    """Cost share type and value edits"""

    def test_set_class_default(self, client: TestClient, plan: dict):
        """Test a class default applies to every benefit without an override."""
        set_class_default(client, plan["_id"], "c1", "COPAY_THEN_COINSURANCE", copayAmount=25, coinsurancePercentage=20)

        grid = client.get(f"/plans/{plan['_id']}/grid").json()

        cls = grid["classes"][0]
        assert cls["classDefault"]["label"] == "Copay Then Coinsurance: $25 then 20%"
        assert {row["costShare"]["source"] for row in cls["benefits"]} == {"class_default"}

    def test_type_change_clears_values(self, client: TestClient, plan: dict):
        """Test changing the cost share type drops the old values."""
        set_class_default(client, plan["_id"], "c1", "COPAY", copayAmount=20)

        response = client.put(
            f"/plans/{plan['_id']}/cost-shares/type",
            json={"classId": "c1", "coverageType": "Adult", "costShareType": "COINSURANCE"},
        )

        record = response.json()["plan"]["costShares"][0]
        assert record["costShareType"] == "COINSURANCE"
        assert record["values"] == {}

    def test_value_edit_on_unconfigured_cell_is_noop(self, client: TestClient, plan: dict):
        """Test a value edit with nothing to build on changes nothing."""
        response = client.put(
            f"/plans/{plan['_id']}/cost-shares/value",
            json={"classId": "c1", "benefitId": "D0120", "coverageType": "Adult", "field": "copayAmount", "value": 10},
        )

        assert response.status_code == 200
        assert response.json()["applied"] is False

    @pytest.mark.parametrize("field_name,value,message", [
        ("copayAmount", -5, "copayAmount cannot be negative"),
        ("coinsurancePercentage", 150, "coinsurancePercentage must be between 0 and 100"),
    ])
    def test_invalid_values(self, client: TestClient, plan: dict, field_name: str, value: float, message: str):
        """Test invalid cost share values are rejected."""
        set_class_default(client, plan["_id"], "c1", "COPAY_THEN_COINSURANCE")

        response = client.put(
            f"/plans/{plan['_id']}/cost-shares/value",
            json={"classId": "c1", "coverageType": "Adult", "field": field_name, "value": value},
        )

        assert response.status_code == 422
        assert message in response.json()["error"]

    def test_value_must_be_finite(self, client: TestClient, plan: dict):
        """Test an overflowing JSON number is rejected instead of stored."""
        set_class_default(client, plan["_id"], "c1", "COPAY", copayAmount=20)

        response = client.put(
            f"/plans/{plan['_id']}/cost-shares/value",
            content='{"classId": "c1", "coverageType": "Adult", "field": "copayAmount", "value": 1e999}',
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 422
        assert "copayAmount must be a number" in response.json()["error"]
        stored = client.get(f"/plans/{plan['_id']}").json()
        assert stored["costShares"][0]["values"] == {"copayAmount": 20}

    def test_field_not_applicable(self, client: TestClient, plan: dict):
        """Test a value the cost share type does not carry is rejected."""
        set_class_default(client, plan["_id"], "c1", "COPAY")

        response = client.put(
            f"/plans/{plan['_id']}/cost-shares/value",
            json={"classId": "c1", "coverageType": "Adult", "field": "coinsurancePercentage", "value": 20},
        )

        assert response.status_code == 422
        assert "coinsurancePercentage does not apply to COPAY" in response.json()["error"]

    def test_coverage_type_not_offered(self, client: TestClient, plan: dict):
        """Test edits are limited to the plan's coverage tabs."""
        response = client.put(
            f"/plans/{plan['_id']}/cost-shares/type",
            json={"classId": "c1", "coverageType": "Family", "costShareType": "COPAY"},
        )

        assert response.status_code == 422
        assert "Coverage type Family is not offered by this plan" in response.json()["error"]

    def test_cost_shares_are_per_coverage(self, client: TestClient, plan: dict):
        """Test adult and pediatric grids are configured separately."""
        set_class_default(client, plan["_id"], "c1", "COPAY", copayAmount=20)

        grid = client.get(f"/plans/{plan['_id']}/grid", params={"coverage": "Pediatric"}).json()

        assert grid["coverageType"] == "Pediatric"
        assert grid["classes"][0]["classDefault"]["source"] == "unconfigured"
        assert grid["classes"][0]["classDefault"]["label"] == "Not configured"


class TestLimits:
    """Limit edits"""

    def test_set_limit_quantity(self, client: TestClient, plan: dict):
        """Test updating a limit quantity."""
        response = client.put(
            f"/plans/{plan['_id']}/limits",
            json={"classId": "c1", "benefitId": "D1110", "field": "quantity", "value": 3},
        )

        assert response.status_code == 200
        assert limit_for(response.json()["plan"], "D1110")["quantity"] == 3

    @pytest.mark.parametrize("value", [0, -1])
    def test_non_positive_quantity_rejected(self, client: TestClient, plan: dict, value: int):
        """Test a non-positive quantity is rejected and the stored value kept."""
        response = client.put(
            f"/plans/{plan['_id']}/limits",
            json={"classId": "c1", "benefitId": "D1110", "field": "quantity", "value": value},
        )

        assert response.status_code == 422
        assert "Quantity must be a positive number" in response.json()["error"]
        stored = client.get(f"/plans/{plan['_id']}").json()
        assert limit_for(stored, "D1110")["quantity"] == 2

    def test_limit_created_for_benefit_without_one(self, client: TestClient, plan: dict):
        """Test editing a benefit with no limit creates it."""
        response = client.put(
            f"/plans/{plan['_id']}/limits",
            json={"classId": "c1", "benefitId": "D0120", "field": "unit", "value": "per_tooth"},
        )

        limit = limit_for(response.json()["plan"], "D0120")
        assert limit["unit"] == "per_tooth"
        assert limit["quantity"] == 1
        assert limit["classId"] == "c1"
        assert limit["benefitName"] == "Periodic Oral Evaluation"

    def test_quantity_must_be_finite(self, client: TestClient, plan: dict):
        """Test an overflowing JSON number is rejected instead of stored."""
        response = client.put(
            f"/plans/{plan['_id']}/limits",
            content='{"classId": "c1", "benefitId": "D1110", "field": "quantity", "value": 1e999}',
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 422
        assert "Quantity must be a positive number" in response.json()["error"]
        stored = client.get(f"/plans/{plan['_id']}").json()
        assert limit_for(stored, "D1110")["quantity"] == 2

    def test_limit_edit_for_unassigned_benefit_is_noop(self, client: TestClient, plan: dict):
        """Test a benefit in no class never gets a limit."""
        response = client.put(
            f"/plans/{plan['_id']}/limits",
            json={"benefitId": "D2330", "field": "quantity", "value": 3},
        )

        assert response.status_code == 200
        assert response.json()["applied"] is False
        stored = client.get(f"/plans/{plan['_id']}").json()
        assert "D2330" not in [limit["benefitId"] for limit in stored["limits"]]

    def test_limits_in_grid(self, client: TestClient, plan: dict):
        """Test grid rows carry the benefit's limit."""
        grid = client.get(f"/plans/{plan['_id']}/grid").json()

        assert grid_row(grid, "c1", "D1110")["limitLabel"] == "2 Per Year"
        assert grid_row(grid, "c1", "D0120")["limit"] is None
        assert grid_row(grid, "c1", "D0120")["limitLabel"] == "No limit set"


class TestGrid:
    """Grid view per network tier and coverage type"""

    def test_default_tab(self, client: TestClient, plan: dict):
        """Test the grid defaults to the first tier and coverage tab."""
        grid = client.get(f"/plans/{plan['_id']}/grid").json()

        assert grid["networkTier"] == 0
        assert grid["networkTierLabel"] == "Tier 1"
        assert grid["coverageType"] == "Adult"
        assert [c["classId"] for c in grid["classes"]] == ["c1", "c2"]
        assert [b["benefitId"] for b in grid["classes"][0]["benefits"]] == ["D0120", "D1110", "D0274"]

    def test_out_of_network_is_last_tier(self, client: TestClient, plan: dict):
        """Test the out-of-network tier follows the in-network tiers."""
        grid = client.get(f"/plans/{plan['_id']}/grid", params={"tier": 2}).json()
        assert grid["networkTierLabel"] == "Out of Network"

    def test_tier_outside_plan(self, client: TestClient, plan: dict):
        """Test a tier the plan does not have is rejected."""
        response = client.get(f"/plans/{plan['_id']}/grid", params={"tier": 3})
        assert response.status_code == 422


class TestSaveAndDiscard:
    """Writing edits back to the structures"""

    def test_save_writes_back_to_structures(self, client: TestClient, plan: dict):
        """Test saving updates the class and limit structures."""
        move(client, plan["_id"], "D1110", "c1", "c2")

        response = client.post(f"/plans/{plan['_id']}/save", headers={"X-User-Id": "saver"})

        assert response.status_code == 200
        assert response.json()["configurationDirty"] is False

        class_structure = client.get(f"/class-structures/{plan['classStructureId']}").json()
        assert [b["id"] for b in class_structure["classes"][1]["benefits"]] == ["D2140", "D1110"]
        assert class_structure["lastModifiedBy"] == "saver"

        limit_structure = client.get(f"/limit-structures/{plan['limitStructureId']}").json()
        cleaning = next(limit for limit in limit_structure["limits"] if limit["benefitId"] == "D1110")
        assert cleaning["classId"] == "c2"
        assert cleaning["quantity"] == 2

    def test_second_save_while_one_in_flight(self, client: TestClient, plan: dict, test_db_session):
        """Test a plan accepts one save at a time."""
        test_db_session.get(DentalPlan, plan["_id"]).save_in_progress = True
        test_db_session.commit()

        response = client.post(f"/plans/{plan['_id']}/save")

        assert response.status_code == 409
        assert response.json()["code"] == "HTTP_409"
        assert response.json()["error"] == "A save is already in progress"

    def test_save_flag_cleared_after_save(self, client: TestClient, plan: dict, test_db_session):
        """Test consecutive saves both succeed."""
        assert client.post(f"/plans/{plan['_id']}/save").status_code == 200
        assert client.post(f"/plans/{plan['_id']}/save").status_code == 200
        assert test_db_session.get(DentalPlan, plan["_id"]).save_in_progress is False

    def test_failed_save_keeps_edits(self, client: TestClient, plan: dict, test_db_session, monkeypatch):
        """Test a store failure rolls back and leaves the plan dirty and saveable."""
        move(client, plan["_id"], "D1110", "c1", "c2")
        commit = test_db_session.commit
        calls = []

        def failing_commit():
            calls.append(1)
            # the first commit marks the save as started
            if len(calls) == 2:
                raise OperationalError("UPDATE", {}, Exception("disk I/O error"))
            commit()

        monkeypatch.setattr(test_db_session, "commit", failing_commit)
        response = client.post(f"/plans/{plan['_id']}/save")
        monkeypatch.undo()

        assert response.status_code == 500
        assert response.json()["code"] == "PERSISTENCE_ERROR"
        stored = client.get(f"/plans/{plan['_id']}").json()
        assert stored["configurationDirty"] is True
        assert benefit_ids(stored, "c2") == ["D2140", "D1110"]
        class_structure = client.get(f"/class-structures/{plan['classStructureId']}").json()
        assert [b["id"] for b in class_structure["classes"][1]["benefits"]] == ["D2140"]
        assert client.post(f"/plans/{plan['_id']}/save").status_code == 200

    def test_discard_after_save_keeps_saved_state(self, client: TestClient, plan: dict):
        """Test a discard returns to the last saved state."""
        set_class_default(client, plan["_id"], "c1", "COPAY", copayAmount=20)
        move(client, plan["_id"], "D1110", "c1", "c2")
        client.post(f"/plans/{plan['_id']}/save")
        move(client, plan["_id"], "D0120", "c1", "c2")

        response = client.post(f"/plans/{plan['_id']}/discard")

        data = response.json()
        assert data["configurationDirty"] is False
        assert benefit_ids(data, "c1") == ["D0120", "D0274"]
        assert benefit_ids(data, "c2") == ["D2140", "D1110"]
        assert data["costShares"][0]["values"] == {"copayAmount": 20}

    def test_discard_restores_structures(self, client: TestClient, plan: dict):
        """Test discarding unsaved edits returns to the stored structures."""
        move(client, plan["_id"], "D0120", "c1", "c2")
        client.put(
            f"/plans/{plan['_id']}/limits",
            json={"classId": "c1", "benefitId": "D1110", "field": "quantity", "value": 5},
        )

        response = client.post(f"/plans/{plan['_id']}/discard")

        assert response.status_code == 200
        data = response.json()
        assert data["classes"] == plan["classes"]
        assert limit_for(data, "D1110")["quantity"] == 2
        assert data["costShares"] == []
        assert data["configurationDirty"] is False

        class_structure = client.get(f"/class-structures/{plan['classStructureId']}").json()
        assert class_structure["classes"] == plan["classes"]
