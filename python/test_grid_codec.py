"""Tests for grid_codec module."""

import json

import pytest

from grid_codec import (
    DecodeError,
    MissingPayloadError,
    UnknownTagError,
    decode_block,
    decode_box,
    decode_grid,
    dumps,
    encode_box,
    encode_grid,
    loads,
)
from grid_parser import parse_grid
from grid_types import (
    Block,
    Cross,
    Curved,
    Direction,
    Empty,
    Intersection,
    Linear,
    Orientation,
)
from pipegrid import BlockOverlapError, OverlapPolicy, RuleSet


def sample_grid():
    return parse_grid("""
        ∧-⊥>
        |X+|
        ⊣⊤<∨
        movable: 0 0 2 1
        fixed: 2 3 1 1
        fixed: 1 1 1 1
    """)


class TestEncode:
    """Tests for the persisted form."""

    def test_box_records(self) -> None:
        assert encode_box(Empty()) == {"tag": "None"}
        assert encode_box(Cross()) == {"tag": "Cross"}
        assert encode_box(Linear(Orientation.VERTICAL)) == {
            "tag": "Linear",
            "orientation": "Vertical",
        }
        assert encode_box(Curved(Direction.W)) == {"tag": "Curved", "direction": "West"}
        assert encode_box(Intersection(Direction.N)) == {
            "tag": "Intersection",
            "direction": "North",
        }

    def test_grid_record(self) -> None:
        data = encode_grid(sample_grid())
        assert data["rows"] == 3
        assert data["columns"] == 4
        assert len(data["boxes"]) == 12
        assert data["boxes"][5] == {"tag": "None"}
        assert data["movableBlocks"] == [{"row": 0, "col": 0, "width": 2, "height": 1}]
        # Sorted by (row, col, width, height)
        assert data["nonMovableBlocks"] == [
            {"row": 1, "col": 1, "width": 1, "height": 1},
            {"row": 2, "col": 3, "width": 1, "height": 1},
        ]

    def test_edges_are_not_persisted(self) -> None:
        data = encode_grid(sample_grid())
        assert "edges" not in data
        assert "edges" not in json.loads(dumps(sample_grid()))


class TestRoundTrip:
    """Tests for decode(encode(grid))."""

    def test_dict_round_trip(self) -> None:
        grid = sample_grid()
        copy = decode_grid(encode_grid(grid))
        assert copy.rows == grid.rows
        assert copy.columns == grid.columns
        assert copy.boxes == grid.boxes
        assert copy.movable_blocks == grid.movable_blocks
        assert copy.non_movable_blocks == grid.non_movable_blocks
        assert copy.edges == grid.edges

    def test_json_round_trip_after_moves(self) -> None:
        grid = sample_grid()
        assert grid.move(0, 2, Direction.S)
        copy = loads(dumps(grid, indent=2))
        assert str(copy) == str(grid)
        assert copy.edges == grid.edges

    def test_decode_rebuilds_edges(self) -> None:
        data = {
            "rows": 1,
            "columns": 2,
            "boxes": [{"tag": "Cross"}, {"tag": "Linear", "orientation": "Horizontal"}],
        }
        grid = decode_grid(data)
        assert grid.edges == ((1,), (0,))
        assert grid.movable_blocks == frozenset()

    def test_stored_edges_are_ignored(self) -> None:
        data = encode_grid(parse_grid("++"))
        data["edges"] = [[], []]
        assert decode_grid(data).edges == ((1,), (0,))


class TestDecodeBox:
    """Tests for decoding single box records."""

    def test_raw_integer_values(self) -> None:
        """Integer tags and payloads from the original wire format decode too."""
        assert decode_box({"tag": 0}) == Empty()
        assert decode_box({"tag": 2, "orientation": 1}) == Linear(Orientation.VERTICAL)
        assert decode_box({"tag": 3, "direction": 1}) == Curved(Direction.E)
        assert decode_box({"tag": 4, "direction": 3}) == Intersection(Direction.W)

    def test_extra_payload_is_ignored(self) -> None:
        assert decode_box({"tag": "Cross", "direction": "North"}) == Cross()

    @pytest.mark.parametrize(
        "record",
        [
            {"tag": "Linear"},
            {"tag": "Linear", "direction": "North"},
            {"tag": "Curved"},
            {"tag": "Curved", "orientation": "Vertical"},
            {"tag": "Intersection"},
        ],
    )
    def test_missing_payload(self, record: dict) -> None:
        with pytest.raises(MissingPayloadError):
            decode_box(record)

    @pytest.mark.parametrize("tag", ["Elbow", "none", 5, -1, None, True])
    def test_unknown_tag(self, tag: object) -> None:
        with pytest.raises(UnknownTagError, match="Unknown box tag"):
            decode_box({"tag": tag})

    @pytest.mark.parametrize(
        "record",
        [
            {"tag": "Curved", "direction": "Up"},
            {"tag": "Curved", "direction": 4},
            {"tag": "Linear", "orientation": "Diagonal"},
        ],
    )
    def test_unknown_payload_value(self, record: dict) -> None:
        with pytest.raises(UnknownTagError):
            decode_box(record)

    def test_missing_tag(self) -> None:
        with pytest.raises(DecodeError, match="no tag"):
            decode_box({"direction": "North"})

    def test_error_hierarchy(self) -> None:
        assert issubclass(MissingPayloadError, DecodeError)
        assert issubclass(UnknownTagError, DecodeError)
        assert issubclass(DecodeError, ValueError)


class TestDecodeGrid:
    """Tests for decoding whole grids."""

    def test_block_record(self) -> None:
        assert decode_block({"row": 1, "col": 2, "width": 3, "height": 4}) == Block(1, 2, 3, 4)
        with pytest.raises(DecodeError, match="missing field"):
            decode_block({"row": 1, "col": 2, "width": 3})
        with pytest.raises(DecodeError):
            decode_block({"row": 1, "col": 2, "width": 0, "height": 1})

    def test_missing_fields(self) -> None:
        with pytest.raises(DecodeError, match="boxes"):
            decode_grid({"rows": 1, "columns": 1})

    def test_wrong_box_count(self) -> None:
        with pytest.raises(DecodeError, match="Expected 4 boxes"):
            decode_grid({"rows": 2, "columns": 2, "boxes": [{"tag": "None"}]})

    def test_not_an_object(self) -> None:
        with pytest.raises(DecodeError):
            decode_grid([1, 2, 3])  # type: ignore[arg-type]

    @pytest.mark.parametrize(
        "text",
        [
            '{"rows": 1, "columns": 1, "boxes": null}',
            '{"rows": 1, "columns": 1, "boxes": 7}',
            '{"rows": 1, "columns": 1, "boxes": [{"tag": "None"}], "movableBlocks": null}',
            '{"rows": 1, "columns": 1, "boxes": [{"tag": "None"}], "nonMovableBlocks": {}}',
        ],
    )
    def test_record_lists_must_be_lists(self, text: str) -> None:
        with pytest.raises(DecodeError, match="must be a list"):
            loads(text)

    @pytest.mark.parametrize("value", [1.7, "3", True, None])
    def test_block_fields_must_be_integers(self, value: object) -> None:
        record = {"row": value, "col": 0, "width": 1, "height": 1}
        with pytest.raises(DecodeError, match="expected an integer"):
            decode_block(record)

    @pytest.mark.parametrize(
        "rows, columns",
        [(True, 1), (1, 1.0), ("1", 1), (None, 1)],
    )
    def test_dimensions_must_be_integers(self, rows: object, columns: object) -> None:
        data = {"rows": rows, "columns": columns, "boxes": [{"tag": "None"}]}
        with pytest.raises(DecodeError, match="expected an integer"):
            decode_grid(data)

    def test_block_record_must_be_an_object(self) -> None:
        data = {"rows": 1, "columns": 1, "boxes": [{"tag": "None"}], "movableBlocks": [[0, 0, 1, 1]]}
        with pytest.raises(DecodeError, match="must be an object"):
            decode_grid(data)

    def test_invalid_json(self) -> None:
        with pytest.raises(DecodeError, match="Invalid JSON"):
            loads("{rows: 1")

    def test_overlapping_pools_follow_rules(self) -> None:
        data = {
            "rows": 2,
            "columns": 2,
            "boxes": [{"tag": "None"}] * 4,
            "movableBlocks": [{"row": 0, "col": 0, "width": 2, "height": 1}],
            "nonMovableBlocks": [{"row": 0, "col": 1, "width": 1, "height": 2}],
        }
        with pytest.raises(BlockOverlapError):
            decode_grid(data)
        grid = decode_grid(data, RuleSet(overlap_policy=OverlapPolicy.ALLOW))
        assert len(grid.movable_blocks) == 1
        assert len(grid.non_movable_blocks) == 1
