import pytest

from omnia.core.utils import format_duration, object_path_for, percentage_score


@pytest.mark.parametrize("correct,total,expected", [
    (0, 2, 0),
    (1, 2, 50),
    (2, 2, 100),
    (1, 3, 33),
    (2, 3, 67),
    (1, 8, 13),  # 12.5 rounds half up
    (0, 0, 0),
])
def test_percentage_score(correct, total, expected):
    assert percentage_score(correct, total) == expected


def test_object_path_for():
    path = object_path_for(7, "Diagram.SVG")
    folder, name = path.split("/")
    assert folder == "7"
    assert name.endswith(".svg")
    assert object_path_for(7, "Diagram.SVG") != path
    assert object_path_for(7, "no-extension").endswith(".bin")


def test_format_duration():
    assert format_duration(0) == "0m 0s"
    assert format_duration(125) == "2m 5s"
