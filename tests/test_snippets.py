from docspan.search.snippets import (
    ELLIPSIS,
    block_order,
    field_rank,
    make_snippet,
    normalize_for_dedupe,
)
from docspan.text.intervals import Range


def test_short_paragraph_is_kept_whole_and_match_survives_remap():
    text = "开展数据的导入工作的通知，请各单位按照要求在规定时间内完成系统数据迁移和核对工作并及时上报结果，逾期未报的单位将予以通报。"
    text = text[:50]
    assert len(text) == 50
    hl = Range(5, 7)

    sn = make_snippet(text, [hl], before=20, after=60)

    assert sn.text == text
    assert not sn.text.startswith(ELLIPSIS)
    assert len(sn.ranges) == 1
    assert sn.ranges[0].slice(sn.text) == hl.slice(text)
    assert hl.slice(text) == "导入"


def test_long_text_is_windowed_with_ellipses():
    text = "x" * 100 + "导入" + "y" * 100
    sn = make_snippet(text, [Range(100, 102)], before=20, after=60)

    assert sn.text.startswith(ELLIPSIS)
    assert sn.text.endswith(ELLIPSIS)
    assert len(sn.text) == 1 + 20 + 2 + 60 + 1
    assert sn.ranges == [Range(21, 23)]
    assert sn.ranges[0].slice(sn.text) == "导入"


def test_ranges_outside_window_are_clipped_or_dropped():
    text = "a" * 30 + "MATCH" + "b" * 200 + "FAR"
    sn = make_snippet(text, [Range(30, 35), Range(30 + 5 + 200, 30 + 5 + 200 + 3), Range(25, 40)], before=10, after=10)

    assert Range(16, 21) in sn.ranges
    assert Range(11, 26) in sn.ranges
    assert all(r.end <= len(sn.text) for r in sn.ranges)
    assert len(sn.ranges) == 2


def test_no_ranges_truncates_to_fixed_length():
    text = "z" * 200

    sn = make_snippet(text, [])

    assert sn.text == "z" * 80 + ELLIPSIS
    assert sn.ranges == []
    assert make_snippet("short", []).text == "short"


def test_window_uses_earliest_match():
    text = "0123456789" * 20
    sn = make_snippet(text, [Range(150, 152), Range(40, 42)], before=5, after=5)

    assert sn.ranges[0].slice(sn.text) == text[40:42]


def test_normalize_for_dedupe_strips_noise():
    a = normalize_for_dedupe("标题： 关于 数据导入，的通知…")
    b = normalize_for_dedupe("关于数据导入的通知")

    assert a == b
    assert len(normalize_for_dedupe("字" * 500)) == 160


def test_block_order_and_field_rank():
    assert block_order("blk_12") == 12
    assert block_order("p3") < block_order("p10")
    assert block_order("intro") == float("inf")
    assert block_order(None) == float("inf")
    assert field_rank("instruction_no") < field_rank("title") < field_rank("content") < field_rank("issued_at")
    assert field_rank("custom") > field_rank("issued_at")


def test_highlight_running_past_window_stops_before_ellipsis():
    text = "x" * 100

    sn = make_snippet(text, [Range(10, 12), Range(11, 80)], before=5, after=10)

    assert sn.text == ELLIPSIS + "x" * 17 + ELLIPSIS
    assert sn.ranges == [Range(6, 8), Range(7, 18)]
    assert ELLIPSIS not in sn.ranges[1].slice(sn.text)
