from pathlib import Path

from tagger.base import TagCategory, TagMeta
from tagger.labels_util import load_selected_tags, parse_category, parse_selected_tags


def test_load_selected_tags_single_column(tmp_path: Path) -> None:
    csv_path = tmp_path / "selected_tags_single.csv"
    csv_path.write_text("# comment\n1girl\n\n", encoding="utf-8")
    tags = load_selected_tags(csv_path)
    assert tags == [TagMeta(name="1girl", category=0, count=0)]


def test_load_selected_tags_two_columns(tmp_path: Path) -> None:
    csv_path = tmp_path / "selected_tags_two.csv"
    csv_path.write_text("123,1girl\nrating:safe,rating\n", encoding="utf-8")
    tags = load_selected_tags(csv_path)
    assert TagMeta(name="1girl", category=0, count=0) in tags
    assert TagMeta(name="rating:safe", category=9, count=0) in tags


def test_wd14_header_and_column_order_preserved() -> None:
    text = "tag_id,name,category,count\n9999999,general,9,807489\n212816,solo,0,95357\n470575,1girl,0,80000\n"
    tags = parse_selected_tags(text)
    assert [tag.name for tag in tags] == ["general", "solo", "1girl"]
    assert tags[0].category == TagCategory.RATING
    assert tags[1].count == 95357


def test_parse_category_accepts_names_and_codes() -> None:
    assert parse_category("Character") == TagCategory.CHARACTER
    assert parse_category("4") == 4
    assert parse_category(" General ") == TagCategory.GENERAL
    assert parse_category("0") == TagCategory.GENERAL


def test_parse_category_blank_or_unknown_is_not_general() -> None:
    assert parse_category("") == TagCategory.UNKNOWN
    assert parse_category(None) == TagCategory.UNKNOWN
    assert parse_category("species") == TagCategory.UNKNOWN


def test_single_column_rows_default_to_general() -> None:
    assert parse_selected_tags("sky\n")[0].category == TagCategory.GENERAL
