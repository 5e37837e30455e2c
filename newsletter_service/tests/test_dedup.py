import re

from newsletter.dedup import (
    dedupe_actions,
    display_width,
    is_degenerate_name,
    merge_actions,
    normalized_key,
    prefer_dated_events,
    sort_actions,
)
from newsletter.task_types import NewsletterAction


def todo(name, **kwargs):
    return NewsletterAction(type="todo", event_name=name, **kwargs)


def event(name, **kwargs):
    return NewsletterAction(type="event", event_name=name, **kwargs)


def test_normalized_key_strips_case_space_and_punctuation():
    assert normalized_key(" Pool Day! ") == "poolday"
    assert normalized_key("プール開き（7月）") == normalized_key("プール開き 7月")
    assert normalized_key("水着・タオル") == "水着タオル"


def test_degenerate_names():
    assert is_degenerate_name("")
    assert is_degenerate_name("   ")
    assert is_degenerate_name("ab")
    assert is_degenerate_name("!!!")
    assert not is_degenerate_name("abc")
    assert not is_degenerate_name("遠足")
    assert display_width("遠足") == 4


def test_todo_and_dated_event_with_same_name_merge_into_event():
    merged = merge_actions([todo("遠足"), event("遠足", event_date="2025-10-15")])
    assert len(merged) == 1
    assert merged[0].type == "event"
    assert merged[0].event_date == "2025-10-15"


def test_richer_duplicate_wins():
    first = todo("持ち物の準備", items=["水着"])
    second = todo("持ち物 の準備", items=["水着", "タオル"], due_date="2025-07-09")
    assert dedupe_actions([first, second]) == [second]


def test_tie_keeps_earlier_variant():
    first = todo("申込書の提出", due_date="2025-09-01", notes="先着順")
    second = todo("申込書の提出", due_date="2025-09-02")
    assert dedupe_actions([first, second]) == [first]


def test_empty_and_short_names_are_dropped():
    assert dedupe_actions([todo(""), todo("ab"), event("x", event_date="2025-07-01")]) == []


def test_low_signal_todos_collapse_to_one():
    kept = dedupe_actions([todo("要確認"), todo("連絡帳を確認"), todo("名札をつける"), todo("上履き", fee="100円")])
    assert [action.event_name for action in kept] == ["要確認", "上履き"]


def test_low_signal_event_is_not_collapsed():
    kept = dedupe_actions([todo("要確認"), event("保育参観")])
    assert len(kept) == 2


def test_dated_event_variant_replaces_todo_even_on_tie():
    survivor = todo("運動会", due_date="2025-09-20")
    variant = event("運動会", event_date="2025-09-21")
    assert dedupe_actions([survivor, variant]) == [survivor]
    assert prefer_dated_events([survivor], [survivor, variant]) == [variant]


def test_undated_event_does_not_replace_todo():
    survivor = todo("運動会", due_date="2025-09-20")
    assert prefer_dated_events([survivor], [survivor, event("運動会")]) == [survivor]


def test_sort_by_effective_date_then_type_then_name():
    actions = [
        todo("ぞうきん", due_date="2025-07-10"),
        todo("あさがお"),
        event("プール開き", event_date="2025-07-10"),
        event("夏祭り", event_date="2025-07-01"),
        todo("えのぐ", due_date="2025-07-10"),
    ]
    assert [action.event_name for action in sort_actions(actions)] == ["夏祭り", "プール開き", "えのぐ", "ぞうきん", "あさがお"]


def test_undated_actions_sort_last():
    actions = merge_actions(
        [
            todo("連絡帳を確認"),
            event("懇談会", event_date="2025-07-20"),
            todo("水着の準備", items=["水着"]),
            todo("申込書の提出", due_date="2025-07-05"),
        ]
    )
    dates = [action.event_date or action.due_date for action in actions]
    assert dates == ["2025-07-05", "2025-07-20", None, None]
    effective = [action.effective_date for action in actions]
    assert effective == sorted(effective)


def test_merge_is_idempotent():
    actions = [
        todo("遠足"),
        event("遠足", event_date="2025-10-15"),
        todo("要確認"),
        todo("名札をつける"),
        todo("運動会", due_date="2025-09-20"),
        event("運動会", event_date="2025-09-21"),
        todo("ab"),
        todo("水着の準備", items=["水着", "タオル"]),
    ]
    once = merge_actions(actions)
    assert merge_actions(once) == once


def test_merge_keeps_one_action_per_key():
    actions = merge_actions(
        [todo("遠足"), event("遠 足", event_date="2025-10-15"), todo("遠足！", due_date="2025-10-10")]
    )
    keys = [normalized_key(action.event_name) for action in actions]
    assert len(keys) == len(set(keys)) == 1
    assert all(re.match(r"^\d{4}-\d{2}-\d{2}$", action.effective_date) for action in actions)
