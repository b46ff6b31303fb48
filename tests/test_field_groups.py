"""Field-group manager tests."""

import random

from certweb.forms import DEFAULT_LAYOUT, FieldGroupManager


class TestFieldGroupManager:
    """FieldGroupManager unit tests."""

    def test_fresh_group_add_returns_one(self):
        """Test the first add creates the group with index 1."""
        manager = FieldGroupManager(DEFAULT_LAYOUT)

        assert manager.add("targetNameSpaces") == 1
        assert manager.current_count("targetNameSpaces") == 1
        assert not manager.is_removable("targetNameSpaces")

    def test_second_add_makes_removable(self):
        """Test a group becomes removable with two instances."""
        manager = FieldGroupManager(DEFAULT_LAYOUT)
        manager.add("targetNameSpaces")

        assert manager.add("targetNameSpaces") == 2
        assert manager.is_removable("targetNameSpaces")

    def test_remove_takes_highest_index(self):
        """Test remove always takes the last instance."""
        manager = FieldGroupManager(DEFAULT_LAYOUT)
        for value in ("ns1", "ns2", "ns3"):
            index = manager.add("targetNameSpaces")
            manager.set_value("targetNameSpaces", index, value)

        assert manager.remove("targetNameSpaces") == 3
        assert manager.values("targetNameSpaces") == ["ns1", "ns2"]

    def test_last_instance_not_removed(self):
        """Test the only instance of a group stays."""
        manager = FieldGroupManager(DEFAULT_LAYOUT)
        manager.add("targetNameSpaces")

        assert manager.remove("targetNameSpaces") is None
        assert manager.current_count("targetNameSpaces") == 1

    def test_remove_unknown_group_is_noop(self):
        """Test removing from a group that was never opened."""
        manager = FieldGroupManager(DEFAULT_LAYOUT)

        assert manager.remove("targetNameSpaces") is None
        assert manager.current_count("targetNameSpaces") == 0

    def test_indices_stay_contiguous(self):
        """Test indices are 1..count after random add/remove sequences."""
        manager = FieldGroupManager(DEFAULT_LAYOUT)
        rng = random.Random(7)

        for _ in range(200):
            if rng.random() < 0.6:
                manager.add("podsUnderTestLabels")
            else:
                before = manager.current_count("podsUnderTestLabels")
                removed = manager.remove("podsUnderTestLabels")
                if before > 1:
                    assert removed == before
            count = manager.current_count("podsUnderTestLabels")
            assert manager.indices("podsUnderTestLabels") == list(range(1, count + 1))

    def test_paired_group_from_layout(self):
        """Test layout groups with two sub-fields are paired."""
        manager = FieldGroupManager(DEFAULT_LAYOUT)
        index = manager.add("skipScalingTestDeployments")

        assert manager.set_pair("skipScalingTestDeployments", index, "web", "prod")
        assert manager.pairs("skipScalingTestDeployments") == [("web", "prod")]
        assert manager.group("skipScalingTestDeployments").sub_fields == ("name", "namespace")

    def test_ad_hoc_groups(self):
        """Test groups outside the layout use the given shape."""
        manager = FieldGroupManager()

        manager.add("extraPairs", paired=True)
        manager.add("extraValues")

        assert manager.group("extraPairs").sub_fields == ("first", "second")
        assert manager.group("extraValues").sub_fields == ("value",)

    def test_out_of_range_write_is_noop(self):
        """Test writing to a missing index changes nothing."""
        manager = FieldGroupManager(DEFAULT_LAYOUT)
        manager.add("targetNameSpaces")

        assert manager.set_value("targetNameSpaces", 2, "x") is False
        assert manager.set_value("targetNameSpaces", 0, "x") is False
        assert manager.values("targetNameSpaces") == [""]

    def test_set_value_on_paired_group_rejected(self):
        """Test single-value writes are refused for paired groups."""
        manager = FieldGroupManager(DEFAULT_LAYOUT)
        manager.add("skipScalingTestStatefulsets")

        assert manager.set_value("skipScalingTestStatefulsets", 1, "x") is False

    def test_set_sub_value(self):
        """Test setting one half of a pair by name."""
        manager = FieldGroupManager(DEFAULT_LAYOUT)
        manager.add("targetCrdFilters")

        assert manager.set_sub_value("targetCrdFilters", 1, "scalable", "false")
        assert manager.get_value("targetCrdFilters", 1, "scalable") == "false"
        assert manager.get_value("targetCrdFilters", 1, "nameSuffix") == ""
        assert manager.set_sub_value("targetCrdFilters", 1, "bogus", "x") is False

    def test_field_ids(self):
        """Test widget identities are derived from group, sub-field and index."""
        manager = FieldGroupManager(DEFAULT_LAYOUT)
        manager.add("skipScalingTestDeployments")
        group = manager.group("skipScalingTestDeployments")

        assert group.field_id(1) == "skipScalingTestDeployments1"
        assert group.field_id(1, "namespace") == "skipScalingTestDeploymentsnamespace1"
