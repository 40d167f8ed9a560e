#!/usr/bin/env python3
"""
Caption Segmentation Evals
Runs the caption segmenter over a golden set of annotated captions so that
changes to the tokenizer cannot silently alter how captions are split.
"""

import json
import os
import sys

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from caption_segmenter import segment_caption


def load_golden_dataset(path="evals/golden_captions.jsonl"):
    data = []
    if not os.path.exists(path):
        return data
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            if line.strip():
                data.append(json.loads(line))
    return data


def run_evals():
    print("--- Running gif-text caption evals ---")
    dataset = load_golden_dataset("evals/golden_captions.jsonl")
    if not dataset:
        print("No golden dataset found. Passing trivially.")
        return True

    passed = 0
    failed = 0

    for item in dataset:
        tokens = segment_caption(item["caption"])
        predicted = [[t.text, t.glyph] for t in tokens]

        if predicted == item["expected"]:
            passed += 1
        else:
            print(f"[FAIL] {item['id']}: Expected {item['expected']}, got {predicted}")
            failed += 1

    total = passed + failed
    print(f"Results: {passed}/{total} passed.")

    if failed:
        print("ERROR: Segmentation changed on the golden set!")
        return False

    print("SUCCESS: All evals passed.")
    return True


if __name__ == "__main__":
    sys.exit(0 if run_evals() else 1)
