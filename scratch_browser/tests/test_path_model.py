import pytest

from scratch_browser.services.errors import InvalidPathError, NoParentError
from scratch_browser.services.path_model import (
    PathModel,
    PathSegment,
    segments_from_parts,
)


def _chain(*names):
    parts = [{"part_name": "/", "full_path": "/"}]
    full = "/"
    for n in names:
        full = f"{full}{n}/"
        parts.append({"part_name": n, "full_path": full})
    return segments_from_parts(parts)


def test_root_segment_display_name():
    segs = _chain()
    assert segs == (PathSegment("/root", "/"),)


def test_first_part_is_root_even_with_dot_sentinel():
    segs = segments_from_parts(
        [{"part_name": ".", "full_path": "./"}, {"part_name": "docs", "full_path": "./docs/"}]
    )
    assert segs[0].display_name == "/root"
    assert segs[1] == PathSegment("docs", "./docs/")


def test_replace_empty_raises_and_keeps_previous_chain():
    model = PathModel()
    model.replace(_chain("docs"))
    with pytest.raises(InvalidPathError):
        model.replace([])
    assert [s.display_name for s in model] == ["/root", "docs"]


def test_replace_marks_leaf_current():
    model = PathModel()
    model.replace(_chain("docs", "2024"))
    assert model.current == model.current_leaf()
    assert model.current_leaf().full_path == "/docs/2024/"


def test_current_leaf_before_load_raises():
    with pytest.raises(InvalidPathError):
        PathModel().current_leaf()


def test_parent_of_is_prefix_before_segment():
    model = PathModel()
    model.replace(_chain("docs", "2024"))
    parent = model.parent_of(model.current_leaf())
    assert [s.full_path for s in parent] == ["/", "/docs/"]
    assert parent[-1] == model.segments[-2]


def test_parent_of_root_raises_no_parent():
    model = PathModel()
    model.replace(_chain("docs"))
    with pytest.raises(NoParentError):
        model.parent_of(model.segments[0])


def test_parent_of_unknown_segment_raises_invalid_path():
    model = PathModel()
    model.replace(_chain("docs"))
    with pytest.raises(InvalidPathError):
        model.parent_of(PathSegment("x", "/x/"))


def test_parent_uses_segments_not_string_trimming():
    # A segment name containing the separator must not confuse the parent lookup
    model = PathModel()
    model.replace(
        [
            PathSegment("/root", "/"),
            PathSegment("a/b", "/a%2Fb/"),
            PathSegment("c", "/a%2Fb/c/"),
        ]
    )
    assert model.parent_of(model.current_leaf())[-1].full_path == "/a%2Fb/"


@pytest.mark.parametrize("depth", [1, 2, 3, 5])
def test_can_go_up_iff_deeper_than_root(depth):
    model = PathModel()
    model.replace(_chain(*[f"d{i}" for i in range(depth - 1)]))
    assert model.depth == depth
    assert model.can_go_up is (depth > 1)


def test_mark_current_retargets_highlight():
    model = PathModel()
    model.replace(_chain("docs", "2024"))
    model.mark_current(model.segments[1])
    assert model.current.display_name == "docs"
    model.mark_leaf_current()
    assert model.current.display_name == "2024"
