"""Utility script that evaluates the normalization pipeline on a small curated set."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from statistics import mean

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

from newsletter.dedup import normalized_key
from newsletter.logic import NewsletterPipeline

DATASET_PATH = Path(__file__).with_name("dataset.json")


def f1(precision: float, recall: float) -> float:
    if precision == 0 or recall == 0:
        return 0.0
    return 2 * precision * recall / (precision + recall)


def evaluate_sample(pipeline: NewsletterPipeline, sample: dict[str, object]) -> dict[str, float]:
    newsletter = pipeline.normalize(
        sample.get("raw_text", ""),
        sample.get("ai_payload"),
        issue_month_hint=sample.get("issue_month"),
    )
    expected = sample.get("expected", {})
    expected_actions = {normalized_key(entry["event_name"]): entry for entry in expected.get("actions", [])}
    predicted_actions = {normalized_key(action.event_name): action for action in newsletter.actions}

    true_positive_keys = set(predicted_actions) & set(expected_actions)
    precision = len(true_positive_keys) / len(predicted_actions) if predicted_actions else float(not expected_actions)
    recall = len(true_positive_keys) / len(expected_actions) if expected_actions else 1.0

    def field_accuracy(field: str) -> float:
        if not true_positive_keys:
            return 0.0
        matches = sum(
            1
            for key in true_positive_keys
            if getattr(predicted_actions[key], field) == expected_actions[key].get(field)
        )
        return matches / len(true_positive_keys)

    expected_title = expected.get("title")
    return {
        "title_match": 1.0 if expected_title is None or newsletter.header.title == expected_title else 0.0,
        "precision": precision,
        "recall": recall,
        "f1": f1(precision, recall),
        "type_accuracy": field_accuracy("type"),
        "event_date_accuracy": field_accuracy("event_date"),
        "due_date_accuracy": field_accuracy("due_date"),
        "predicted_actions": float(len(predicted_actions)),
        "expected_actions": float(len(expected_actions)),
    }


def main() -> None:
    if not DATASET_PATH.exists():
        raise SystemExit(f"Dataset not found: {DATASET_PATH}")

    dataset = json.loads(DATASET_PATH.read_text(encoding="utf-8"))
    pipeline = NewsletterPipeline()

    sample_metrics = [evaluate_sample(pipeline, sample) for sample in dataset]

    def average(metric_name: str) -> float:
        values = [metrics[metric_name] for metrics in sample_metrics]
        return float(mean(values)) if values else 0.0

    summary = {
        "title_accuracy": average("title_match"),
        "precision": average("precision"),
        "recall": average("recall"),
        "f1": average("f1"),
        "type_accuracy": average("type_accuracy"),
        "event_date_accuracy": average("event_date_accuracy"),
        "due_date_accuracy": average("due_date_accuracy"),
        "avg_predicted_actions": average("predicted_actions"),
        "avg_expected_actions": average("expected_actions"),
    }

    print(json.dumps({"samples": sample_metrics, "aggregate": summary}, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
