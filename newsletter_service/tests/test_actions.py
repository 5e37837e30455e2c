from newsletter.actions import (
    CanonicalActionAdapter,
    EventRecordAdapter,
    TextRecordAdapter,
    TodoRecordAdapter,
    normalize_actions,
    normalize_infos,
    select_adapter,
    to_confidence,
    to_repeat_rule,
)
from newsletter.task_types import RepeatRule


def test_adapter_selection_by_structure():
    assert isinstance(select_adapter({"event_name": "遠足"}, "todos"), CanonicalActionAdapter)
    assert isinstance(select_adapter({"title": "運動会", "date": "10/1"}, "events"), EventRecordAdapter)
    assert isinstance(select_adapter({"title": "運動会", "type": "event"}, "actions"), EventRecordAdapter)
    assert isinstance(select_adapter({"task": "雑巾を持参"}, "tasks"), TodoRecordAdapter)
    assert isinstance(select_adapter("上履きを洗う", "todos"), TextRecordAdapter)
    assert select_adapter(42, "todos") is None


def test_canonical_action_gets_defaults():
    [action] = normalize_actions({"actions": [{"type": "event", "event_name": " 夏祭り ", "event_date": "7/20"}]}, "2025-07")
    assert action.type == "event"
    assert action.event_name == "夏祭り"
    assert action.event_date == "2025-07-20"
    assert action.importance == "medium"
    assert action.action_required is True
    assert action.confidence.date == 0.7
    assert action.repeat_rule is None
    assert action.items == []


def test_unknown_type_becomes_todo():
    [action] = normalize_actions({"actions": [{"type": "memo", "event_name": "連絡帳の確認"}]})
    assert action.type == "todo"


def test_todo_field_fallback_chain():
    payload = {
        "todos": [
            {"title": "申込書の提出", "deadline": "9月5日", "priority": "high", "items": ["申込書", "", 3]},
            {"task": "雑巾を持参", "dueDate": "2025/9/1"},
        ]
    }
    first, second = normalize_actions(payload, "2025-09")
    assert first.event_name == "申込書の提出"
    assert first.due_date == "2025-09-05"
    assert first.importance == "high"
    assert first.items == ["申込書", "3"]
    assert second.event_name == "雑巾を持参"
    assert second.due_date == "2025-09-01"


def test_event_record_mapping():
    payload = {"events": [{"title": "運動会", "date": "10月12日", "description": "雨天延期"}]}
    [action] = normalize_actions(payload, "2025-10")
    assert action.type == "event"
    assert action.event_date == "2025-10-12"
    assert action.notes == "雨天延期"


def test_events_record_with_event_name_stays_an_event():
    record = {"event_name": "運動会", "date": "9/20", "items": ["水筒"]}
    assert isinstance(select_adapter(record, "events"), EventRecordAdapter)
    [action] = normalize_actions({"events": [record]}, "2025-09")
    assert action.type == "event"
    assert action.event_name == "運動会"
    assert action.event_date == "2025-09-20"
    assert action.items == ["水筒"]


def test_missing_name_becomes_placeholder():
    [action] = normalize_actions({"todos": [{"deadline": "9/1"}]}, "2025-09")
    assert action.event_name == "要確認"


def test_empty_name_is_not_replaced():
    [action] = normalize_actions({"actions": [{"type": "todo", "event_name": ""}]})
    assert action.event_name == ""


def test_all_source_arrays_are_collected():
    payload = {
        "actions": [{"event_name": "参観日"}],
        "todos": ["上履きを洗う"],
        "tasks": [{"task": "雑巾を持参"}],
        "events": [{"title": "運動会"}],
        "unrelated": [{"title": "無視"}],
    }
    names = [action.event_name for action in normalize_actions(payload)]
    assert names == ["参観日", "上履きを洗う", "雑巾を持参", "運動会"]


def test_unparseable_dates_are_none():
    [action] = normalize_actions({"actions": [{"event_name": "懇談会", "event_date": "来週の水曜"}]}, "2025-07")
    assert action.event_date is None


def test_invalid_importance_defaults_to_medium():
    [action] = normalize_actions({"actions": [{"event_name": "懇談会", "importance": "urgent"}]})
    assert action.importance == "medium"


def test_confidence_is_clamped_and_defaulted():
    confidence = to_confidence({"date": 1.5, "due": -1, "items": "high"})
    assert (confidence.date, confidence.due, confidence.items) == (1.0, 0.0, 0.7)
    assert to_confidence(None).items == 0.7


def test_repeat_rule_requires_days_and_time():
    assert to_repeat_rule({"byDay": ["mo", "TU", "XX"], "time": "7:30"}) == RepeatRule(by_day=["MO", "TU"], time="07:30")
    assert to_repeat_rule({"by_day": ["FR"], "time": "08:00"}) == RepeatRule(by_day=["FR"], time="08:00")
    assert to_repeat_rule({"byDay": ["MO"]}) is None
    assert to_repeat_rule({"byDay": [], "time": "08:00"}) is None
    assert to_repeat_rule({"byDay": ["MO"], "time": "25:00"}) is None
    assert to_repeat_rule({"days": "MO", "time": "08:00"}) is None
    assert to_repeat_rule(None) is None


def test_infos_from_notices():
    infos = normalize_infos({"notices": [{"title": "誕生日", "content": "9月生まれ"}, {"description": "作品展示"}, "季節の話題"]})
    assert [(info.title, info.summary) for info in infos] == [
        ("誕生日", "9月生まれ"),
        ("お知らせ", "作品展示"),
        ("お知らせ", "季節の話題"),
    ]


def test_infos_prefers_infos_array():
    infos = normalize_infos({"infos": [{"title": "近況", "summary": "元気です", "audience": "全園児"}], "notices": [{"title": "x"}]})
    assert len(infos) == 1
    assert infos[0].audience == "全園児"
