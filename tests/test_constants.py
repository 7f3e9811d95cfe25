"""Tests for the closed enumerations and conventions in constants.py.

Also verifies that modules import these values instead of redefining them.
"""

import ast
from pathlib import Path

import qualigraph.constants as constants


class TestEnumerations:
    def test_entity_types(self):
        assert len(constants.VALID_ENTITY_TYPES) == 15
        assert "researchQuestion" in constants.VALID_ENTITY_TYPES
        assert "codeGroup" in constants.VALID_ENTITY_TYPES

    def test_reserved_types_present(self):
        assert constants.STATUS_ENTITY_TYPE in constants.VALID_ENTITY_TYPES
        assert constants.PRIORITY_ENTITY_TYPE in constants.VALID_ENTITY_TYPES
        assert constants.HAS_STATUS in constants.VALID_RELATION_TYPES
        assert constants.HAS_PRIORITY in constants.VALID_RELATION_TYPES

    def test_relation_types(self):
        assert len(constants.VALID_RELATION_TYPES) == 20
        for relation_type in ("part_of", "codes", "contains", "supports", "answers", "reflects_on"):
            assert relation_type in constants.VALID_RELATION_TYPES

    def test_no_duplicates(self):
        for values in (
            constants.VALID_ENTITY_TYPES,
            constants.VALID_RELATION_TYPES,
            constants.STATUS_VALUES,
            constants.PRIORITY_VALUES,
        ):
            assert len(values) == len(set(values))

    def test_status_and_priority_values(self):
        assert len(constants.STATUS_VALUES) == 20
        assert constants.PRIORITY_VALUES == ("high", "medium", "low")

    def test_data_source_types_are_entity_types(self):
        assert set(constants.DATA_SOURCE_TYPES) <= set(constants.VALID_ENTITY_TYPES)


class TestNoRedefinitions:
    """Module-level uppercase assignments in these modules must not shadow constants."""

    MODULES = ("engine.py", "views.py", "query.py", "state.py", "context.py")

    def _module_level_names(self, path: Path) -> set[str]:
        tree = ast.parse(path.read_text(encoding="utf-8"))
        names = set()
        for node in tree.body:
            if isinstance(node, ast.Assign):
                for target in node.targets:
                    if isinstance(target, ast.Name):
                        names.add(target.id)
            elif isinstance(node, ast.AnnAssign) and isinstance(node.target, ast.Name):
                names.add(node.target.id)
        return names

    def test_constants_not_redefined(self):
        package_dir = Path(constants.__file__).parent
        public = {name for name in vars(constants) if name.isupper()}

        for module in self.MODULES:
            clashes = self._module_level_names(package_dir / module) & public
            assert not clashes, f"{module} redefines {sorted(clashes)}"
