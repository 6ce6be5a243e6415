"""
Tests for recall_utils/access.py (object and field access pre-checks)
"""

import threading

import pytest

from recall_utils.access import (
    AccessChecker,
    AccessDeniedError,
    AccessOperation,
    AccessViolation,
    LabelRegistry,
    ObjectGrant,
)


@pytest.fixture
def checker():
    return AccessChecker(
        grants=[
            ObjectGrant(
                object_type="Account",
                operations={AccessOperation.READ, AccessOperation.UPDATE},
                readable_fields={"Id", "Name", "Industry"},
                updateable_fields={"Name"},
            ),
            ObjectGrant(
                object_type="Lead",
                operations=set(AccessOperation),
                readable_fields={"Id"},
                creatable_fields={"Status"},
            ),
        ],
        labels=LabelRegistry(
            object_labels={"Account": "Customer Account"},
            field_labels={"Account": {"Industry": "Sector"}},
        ),
    )


class TestChecks:
    def test_allowed_checks_return_none(self, checker):
        assert checker.check_readable("Account", ["Id", "Name"]) is None
        assert checker.check_updateable("Account", ["Name"]) is None
        assert checker.check_insertable("Lead", ["Status"]) is None
        assert checker.check_deletable("Lead") is None

    def test_field_names_case_insensitive(self, checker):
        checker.check_readable("account", ["NAME", "industry"])

    def test_object_level_denial(self, checker):
        with pytest.raises(AccessDeniedError) as exc_info:
            checker.check_deletable("Account")

        assert exc_info.value.violation == AccessViolation(AccessOperation.DELETE, "Account")
        assert exc_info.value.field is None

    def test_field_level_denial(self, checker):
        with pytest.raises(AccessDeniedError) as exc_info:
            checker.check_updateable("Account", ["Name", "Industry"])

        err = exc_info.value
        assert err.operation == AccessOperation.UPDATE
        assert err.object_type == "Account"
        assert err.field == "Industry"

    def test_unknown_object_denied(self, checker):
        with pytest.raises(AccessDeniedError) as exc_info:
            checker.check_readable("Opportunity")
        assert exc_info.value.operation == AccessOperation.READ

    def test_insert_without_create_grant(self, checker):
        with pytest.raises(AccessDeniedError):
            checker.check_insertable("Account", ["Name"])


class TestBypass:
    def test_bypass_block(self, checker):
        with checker.bypass():
            checker.check_deletable("Account")
            checker.check_readable("Opportunity", ["Amount"])

        with pytest.raises(AccessDeniedError):
            checker.check_deletable("Account")

    def test_bypass_does_not_leak_to_other_threads(self, checker):
        entered = threading.Event()
        done = threading.Event()
        outcome = {}

        def other_thread():
            entered.wait(timeout=5)
            outcome["enabled"] = checker.enabled
            try:
                checker.check_deletable("Account")
                outcome["denied"] = False
            except AccessDeniedError:
                outcome["denied"] = True
            done.set()

        t = threading.Thread(target=other_thread)
        t.start()
        with checker.bypass():
            entered.set()
            assert done.wait(timeout=5)
            assert not checker.enabled
        t.join()

        assert outcome == {"enabled": True, "denied": True}

    def test_nested_bypass(self, checker):
        with checker.bypass():
            with checker.bypass():
                assert not checker.enabled
            assert not checker.enabled
        assert checker.enabled

    def test_global_toggle(self, checker, restore_config):
        restore_config.set("access_checks_enabled", False)
        assert not checker.enabled
        checker.check_deletable("Account")

        restore_config.set("access_checks_enabled", True)
        assert checker.enabled


class TestMessages:
    def test_object_message_uses_label(self, checker):
        with pytest.raises(AccessDeniedError, match="Insufficient access to delete Customer Account"):
            checker.check_deletable("Account")

    def test_field_message_uses_labels(self, checker):
        with pytest.raises(AccessDeniedError) as exc_info:
            checker.check_updateable("Account", ["Industry"])
        assert str(exc_info.value) == "Insufficient access to update field Sector on Customer Account"

    def test_unlabelled_names_fall_back(self):
        labels = LabelRegistry()
        violation = AccessViolation(AccessOperation.READ, "Case", "Subject")
        assert labels.format(violation) == "Insufficient access to read field Subject on Case"
