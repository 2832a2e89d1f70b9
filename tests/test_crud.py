"""
Tests for the filter translation shared by every CRUD class.
"""

import pytest

from academic_vault.crud import file_crud, folder_crud


class TestConditions:
    def test_none_becomes_is_null(self):
        [condition] = folder_crud._conditions({"parent_id": None})
        assert str(condition) == "folders.parent_id IS NULL"

    def test_list_becomes_in(self):
        [condition] = file_crud._conditions({"folder_id": ["a", "b"]})
        assert "files.folder_id IN" in str(condition)

    def test_scalar_becomes_equality(self):
        [condition] = file_crud._conditions({"owner_id": "u1"})
        assert str(condition) == "files.owner_id = :owner_id_1"

    def test_unknown_field_is_rejected(self):
        with pytest.raises(ValueError):
            file_crud._conditions({"color": "blue"})

    def test_no_filters_means_no_conditions(self):
        assert file_crud._conditions(None) == []
