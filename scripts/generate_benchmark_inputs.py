#!/usr/bin/env python3
"""
Generate benchmark page dumps by replicating the pages of the sample dump.
"""

import sys
from pathlib import Path
from xml.sax.saxutils import escape

from wikicount.common.documents import PageSource

# Configuration
SHARED_DIR = Path("shared")
SAMPLES_DIR = SHARED_DIR / "samples"
INPUT_DIR = SHARED_DIR / "input"
SOURCE_FILE = SAMPLES_DIR / "enwiki_sample.xml"

# Target page counts
TARGETS = [
    ("enwiki_small.xml", 1000),
    ("enwiki_medium.xml", 20000),
    ("enwiki_large.xml", 100000),
]

HEADER = '<mediawiki xmlns="http://www.mediawiki.org/xml/export-0.10/" version="0.10" xml:lang="en">\n'
FOOTER = '</mediawiki>\n'


def generate_file(output_path: Path, num_pages: int, pages: list) -> int:
    """
    Write a dump of num_pages pages, cycling through the sample pages.

    Args:
        output_path: Path where the dump should be written
        num_pages: Number of <page> elements to write
        pages: Documents to replicate

    Returns:
        Size of the written file in bytes
    """
    print(f"Generating {output_path.name} ({num_pages} pages)...")

    if not pages:
        raise ValueError("Sample dump has no pages!")

    with open(output_path, 'w', encoding='utf-8') as f:
        f.write(HEADER)
        for i in range(num_pages):
            page = pages[i % len(pages)]
            f.write("  <page>\n")
            f.write(f"    <title>{escape(page.title)} {i}</title>\n")
            f.write(f"    <id>{i + 1}</id>\n")
            f.write(f"    <revision><text xml:space=\"preserve\">{escape(page.text)}</text></revision>\n")
            f.write("  </page>\n")
        f.write(FOOTER)

    actual_size = output_path.stat().st_size
    print(f"  ✓ Created: {output_path.name} ({actual_size / (1024*1024):.2f} MB)")
    return actual_size


def main():
    """Generate all benchmark dumps."""
    print("=" * 70)
    print("Generating Benchmark Page Dumps")
    print("=" * 70)

    INPUT_DIR.mkdir(parents=True, exist_ok=True)

    if not SOURCE_FILE.exists():
        print(f"❌ Sample dump not found: {SOURCE_FILE}")
        return 1

    with PageSource(str(SOURCE_FILE), max_documents=10000) as source:
        pages = list(source)
    print(f"\n📄 Sample dump: {SOURCE_FILE} ({len(pages)} pages)")

    total_size = 0
    for filename, num_pages in TARGETS:
        try:
            total_size += generate_file(INPUT_DIR / filename, num_pages, pages)
        except (OSError, ValueError) as e:
            print(f"  ❌ Error generating {filename}: {e}")
            return 1

    print("\n" + "=" * 70)
    print("✓ Generation complete!")
    print(f"  Total size: {total_size / (1024*1024):.2f} MB")
    print(f"  Files created in: {INPUT_DIR}")
    print("=" * 70)
    return 0


if __name__ == "__main__":
    sys.exit(main())
