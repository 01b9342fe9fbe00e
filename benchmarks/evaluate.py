"""Evaluation suite for the keyed Bloom filter.

Generates unique synthetic items, performs a deterministic 80/20 split, sizes
a filter for the 80% training set from the target false-positive probability,
and runs:

A. Membership on the training set (must be all present)
B. False-positive rate on the held-out 20%
C. Collision analysis using simple modifications of held-out items
D. Filter properties and memory usage
E. Insertion and query throughput
F. JSON wire round trip

Run with:

    python -m benchmarks.evaluate --items 100000 --fp-prob 0.01
"""
from __future__ import annotations

import argparse
import logging
import time
import uuid
from typing import Optional, Tuple

from bf_keyed.bloom_filter import BloomFilter


DEFAULT_ITEMS = 100_000
DEFAULT_FP_PROB = 0.01
DEFAULT_QUERIES = 1_000_000


def generate_synthetic_data(n: int) -> list[str]:
    """Generate n unique random strings."""
    print(f"Generating {n} synthetic items...")
    # UUIDs are virtually guaranteed to be unique
    return [str(uuid.uuid4()) for _ in range(n)]


def build_split(words: list[str], fp_prob: float) -> Tuple[BloomFilter, list[str], list[str]]:
    """Create deterministic 80/20 split and build the bloom filter.

    Returns (bloom_filter, training_items, test_items).
    """
    split = int(len(words) * 0.8)
    train = words[:split]
    test = words[split:]

    bloom = BloomFilter.for_num_entries_and_fp_prob(max(1, len(train)), fp_prob)
    bloom.update(train)

    return bloom, train, test


def check_membership(bloom: BloomFilter, train: list[str]) -> int:
    """Verify all training items are present in the filter."""
    print("TEST A: Membership on training set")
    missing = [w for w in train if w not in bloom]
    print(f"  Training items: {len(train)}")
    print(f"  Missing after insertion: {len(missing)} (expected 0)")
    if missing:
        print(f"  Example missing: {missing[:5]}")
    print()
    return len(missing)


def measure_false_positives(bloom: BloomFilter, train: list[str], test: list[str]) -> Optional[float]:
    """Measure empirical false positive rate on held-out test set."""
    print("TEST B: False positive rate on held-out items")
    train_set = set(train)
    test_filtered = [w for w in test if w not in train_set]

    if not test_filtered:
        print("  No held-out items available for testing.")
        return None

    false_positives = sum(1 for w in test_filtered if w in bloom)
    fpr = false_positives / len(test_filtered)
    expected = bloom.estimate_false_positive_probability(len(train))

    print(f"  Held-out items: {len(test_filtered)}")
    print(f"  False positives: {false_positives}")
    print(f"  Empirical FPR: {fpr:.6f} ({fpr*100:.4f}%)")
    print(f"  Theoretical FPR: {expected:.6f} ({expected*100:.4f}%)")
    print()
    return fpr


def analyze_collisions(bloom: BloomFilter, train: list[str], test: list[str]) -> None:
    """Analyze collision rate using simple modifications of held-out items."""
    print("TEST C: Collision analysis with simple modifications of held-out items")
    modifications = []

    for word in test[:500]:
        modifications.append(word + "x")
        if len(word) > 1:
            modifications.append(word[:-1] + "z")
        modifications.append("x" + word)

    known = set(train) | set(test)
    modifications = [m for m in modifications if m not in known]

    if not modifications:
        print("  No modifications available for testing.")
        return

    false_positives = sum(1 for m in modifications if m in bloom)
    rate = false_positives / len(modifications)

    print(f"  Variants tested: {len(modifications)}")
    print(f"  False positives from variants: {false_positives}")
    print(f"  Collision rate: {rate:.6f} ({rate*100:.4f}%)")
    print()


def show_properties(bloom: BloomFilter, train: list[str]) -> None:
    """Display filter memory and configuration properties."""
    print("TEST D: Filter properties")
    bytes_len = len(bloom.bit_array)

    print(f"  Filter size (bits): {bloom.total_bits}")
    print(f"  Filter size (bytes): {bytes_len}")
    print(f"  Filter size (MB): {bytes_len / (1024 * 1024):.2f}")
    print(f"  Bits per entry (k): {bloom.bits_per_entry}")
    print(f"  Fill ratio: {bloom.fill_ratio():.2%}")
    print(f"  Items inserted: {len(train)}")
    if train:
        print(f"  Bytes per item: {bytes_len / len(train):.4f}")
    print()


def measure_performance(bloom: BloomFilter, train: list[str], test: list[str], queries: int) -> dict:
    """Measure insertion and query throughput (ops/sec)."""
    print("TEST E: Performance benchmarking")

    bench_filter = BloomFilter(bloom.total_bits, bloom.bits_per_entry)

    start_time = time.perf_counter()
    bench_filter.update(train)
    insert_time = time.perf_counter() - start_time
    insert_ops = len(train) / insert_time if insert_time > 0 else float("inf")
    print(f"    - Inserted {len(train)} items in {insert_time:.4f} sec")
    print(f"    - Insertion throughput: {insert_ops:,.0f} ops/sec")

    lookups = (test * (queries // max(1, len(test)) + 1))[:queries]
    start_time = time.perf_counter()
    for word in lookups:
        _ = word in bench_filter
    query_time = time.perf_counter() - start_time
    query_ops = len(lookups) / query_time if query_time > 0 else float("inf")
    print(f"    - Performed {len(lookups)} queries in {query_time:.4f} sec")
    print(f"    - Query throughput: {query_ops:,.0f} ops/sec")
    print()

    return {
        "insert_count": len(train),
        "insert_time": insert_time,
        "insert_ops_per_sec": insert_ops,
        "query_count": len(lookups),
        "query_time": query_time,
        "query_ops_per_sec": query_ops,
    }


def check_round_trip(bloom: BloomFilter, train: list[str], test: list[str]) -> bool:
    """Serialize to JSON, read it back and compare answers."""
    print("TEST F: JSON wire round trip")
    start_time = time.perf_counter()
    text = bloom.to_json()
    restored = BloomFilter.from_json(text)
    elapsed = time.perf_counter() - start_time

    sample = train[:1000] + test[:1000]
    mismatches = sum(1 for w in sample if (w in bloom) != (w in restored))

    print(f"  JSON size (bytes): {len(text)}")
    print(f"  Round trip time: {elapsed:.4f} sec")
    print(f"  Identical state: {restored == bloom}")
    print(f"  Mismatched answers: {mismatches} of {len(sample)} (expected 0)")
    print()
    return mismatches == 0


def run_all(items: int, fp_prob: float, queries: int) -> int:
    """Run all evaluations; return a process exit status."""
    words = generate_synthetic_data(items)

    print("=" * 60)
    print(f"Running keyed Bloom filter evaluation (80/20 split, p={fp_prob})")
    print("=" * 60)
    print()

    bloom, train, test = build_split(words, fp_prob)
    print(repr(bloom))
    print()

    missing = check_membership(bloom, train)
    measure_false_positives(bloom, train, test)
    analyze_collisions(bloom, train, test)
    show_properties(bloom, train)
    measure_performance(bloom, train, test, queries)
    round_trip_ok = check_round_trip(bloom, train, test)

    print("=" * 60)
    if missing or not round_trip_ok:
        print("Evaluation FAILED")
        print("=" * 60)
        return 1
    print("Evaluation completed successfully!")
    print("=" * 60)
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--items", type=int, default=DEFAULT_ITEMS, help="number of synthetic items")
    parser.add_argument("--fp-prob", type=float, default=DEFAULT_FP_PROB, help="target false-positive probability")
    parser.add_argument("--queries", type=int, default=DEFAULT_QUERIES, help="number of timed queries")
    parser.add_argument("--verbose", action="store_true", help="enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return run_all(args.items, args.fp_prob, args.queries)


if __name__ == "__main__":
    raise SystemExit(main())
