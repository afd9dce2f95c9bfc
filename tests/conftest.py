"""
Pytest configuration and shared fixtures
"""

import pytest
import os
import tempfile
import shutil
from xml.sax.saxutils import escape

from wikicount.common.config import WordCountConfig
from wikicount.common.documents import Document

REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def write_dump(path, pages, namespace=True):
    """Write (title, text) pairs as a MediaWiki style XML dump"""
    root_open = '<mediawiki xmlns="http://www.mediawiki.org/xml/export-0.10/">' if namespace else '<mediawiki>'
    with open(path, 'w', encoding='utf-8') as f:
        f.write(root_open + '\n')
        for title, text in pages:
            f.write('  <page>\n')
            f.write(f'    <title>{escape(title)}</title>\n')
            f.write(f'    <revision><text>{escape(text)}</text></revision>\n')
            f.write('  </page>\n')
        f.write('</mediawiki>\n')
    return path


@pytest.fixture
def temp_dir():
    """Create temporary directory for test files"""
    dirpath = tempfile.mkdtemp()
    yield dirpath
    shutil.rmtree(dirpath)


@pytest.fixture
def sample_texts():
    """Page texts with known word counts"""
    return [
        "The quick brown fox jumps over the lazy dog.",
        "The dog was really lazy.",
        "The fox was very quick and brown.",
        "Quick brown foxes are amazing animals.",
        "Lazy dogs sleep all day.",
        "I saw a dog and a fox, x y z.",
        "It's a dog's life, isn't it?",
    ]


@pytest.fixture
def sample_documents(sample_texts):
    """Documents built from sample_texts"""
    return [Document(title=f"Page {i}", text=text) for i, text in enumerate(sample_texts)]


@pytest.fixture
def sample_dump_file(temp_dir, sample_texts):
    """XML dump of the sample texts"""
    pages = [(f"Page {i}", text) for i, text in enumerate(sample_texts)]
    return write_dump(os.path.join(temp_dir, 'dump.xml'), pages)


@pytest.fixture
def bundled_sample_dump():
    """Path to the sample dump shipped with the repository"""
    return os.path.join(REPO_ROOT, 'shared', 'samples', 'enwiki_sample.xml')


@pytest.fixture
def make_config():
    """Factory for small, fast run configurations"""
    def _make(**overrides):
        values = dict(max_documents=100000, unit_size=2, worker_count=2, threshold=2)
        values.update(overrides)
        return WordCountConfig(**values)
    return _make


@pytest.fixture
def make_dump(temp_dir):
    """Factory writing (title, text) pairs to a dump file in temp_dir"""
    def _make(name, pages, namespace=True):
        return write_dump(os.path.join(temp_dir, name), pages, namespace=namespace)
    return _make
