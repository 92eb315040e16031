import json
import os
import threading

import pandas as pd
import pytest
import requests

from lexcorpus.errors import NetworkError
from lexcorpus.ingest.fetcher import FetchResult
from lexcorpus.ingest.pipeline import IngestOptions, read_seed, run_ingest, seed_path, write_seed
from lexcorpus.ingest.schemas import DocumentDescriptor, DocumentSeed


def article_page(count=12):
    body = []
    for n in range(1, count + 1):
        if n == 1:
            body.append('<p><b>Chương I</b></p><p>QUY ĐỊNH CHUNG</p>')
        body.append(
            f'<p><a name="dieu_{n}"></a><b>Điều {n}. Tiêu đề {n}</b></p>'
            f'<p>Nội dung đầy đủ của điều {n} quy định chi tiết về vấn đề này.</p>'
        )
    return f"<html><body><div>{''.join(body)}</div></body></html>"


class FakeFetcher:
    def __init__(self, responses):
        self.responses = responses
        self.calls = []

    def fetch(self, url):
        self.calls.append(url)
        outcome = self.responses[url]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def ok(body):
    return FetchResult(status=200, body=body, content_type='text/html', final_url='')


def acts():
    return [
        DocumentDescriptor(id='law-a', title='Luật A', short_name='A', url='https://example.org/a'),
        DocumentDescriptor(id='law-b', title='Luật B', short_name='B', url='https://example.org/b'),
    ]


@pytest.fixture
def opts(tmp_path):
    return IngestOptions(
        source_dir=str(tmp_path / 'source'),
        seed_dir=str(tmp_path / 'seed'),
        census_path=str(tmp_path / 'census.json'),
        report_path=str(tmp_path / 'report.csv'),
    )


def test_parsed_and_failed_documents_both_get_seeds(opts):
    fetcher = FakeFetcher({
        'https://example.org/a': ok(article_page()),
        'https://example.org/b': NetworkError('https://example.org/b', 3),
    })
    stats = run_ingest(acts(), opts, fetcher=fetcher)
    assert stats.processed == 2
    assert stats.failed == 0
    a = read_seed(seed_path(opts.seed_dir, 'law-a'))
    b = read_seed(seed_path(opts.seed_dir, 'law-b'))
    assert len(a.provisions) == 12
    assert a.provisions[0].provision_ref == 'dieu1'
    assert b.provisions == [] and b.title == 'Luật B'
    # source HTML is cached for successful fetches only
    assert os.path.exists(os.path.join(opts.source_dir, 'law-a.html'))
    assert not os.path.exists(os.path.join(opts.source_dir, 'law-b.html'))


def test_short_body_is_metadata_only(opts):
    fetcher = FakeFetcher({
        'https://example.org/a': ok('<html>tiny</html>'),
        'https://example.org/b': FetchResult(status=404, body='', content_type='text/html', final_url=''),
    })
    stats = run_ingest(acts(), opts, fetcher=fetcher)
    assert [r['status'] for r in stats.report] == ['metadata', 'metadata']
    assert stats.total_provisions == 0


def test_report_csv_written(opts):
    fetcher = FakeFetcher({
        'https://example.org/a': ok(article_page()),
        'https://example.org/b': NetworkError('https://example.org/b', 3),
    })
    run_ingest(acts(), opts, fetcher=fetcher)
    df = pd.read_csv(opts.report_path)
    assert list(df.columns) == ['id', 'short_name', 'provisions', 'definitions', 'status']
    assert df.set_index('id').loc['law-a', 'provisions'] == 12
    assert df.set_index('id').loc['law-b', 'status'] == 'metadata'


def test_redirect_loop_still_records_metadata_seed(opts):
    fetcher = FakeFetcher({
        'https://example.org/a': requests.exceptions.TooManyRedirects('Exceeded 30 redirects.'),
        'https://example.org/b': ok(article_page()),
    })
    stats = run_ingest(acts(), opts, fetcher=fetcher)
    assert stats.processed == 2
    assert stats.failed == 1
    a = read_seed(seed_path(opts.seed_dir, 'law-a'))
    assert a is not None
    assert a.provisions == [] and a.title == 'Luật A'
    assert stats.report[0]['status'].startswith('ERROR')
    assert len(read_seed(seed_path(opts.seed_dir, 'law-b')).provisions) == 12


def test_stop_event_halts_before_next_document(opts):
    stop = threading.Event()
    stop.set()
    fetcher = FakeFetcher({})
    stats = run_ingest(acts(), opts, fetcher=fetcher, stop_event=stop)
    assert stats.interrupted is True
    assert stats.processed == 0
    assert fetcher.calls == []
    assert os.listdir(opts.seed_dir) == []


def test_limit_caps_documents(opts):
    opts.limit = 1
    fetcher = FakeFetcher({'https://example.org/a': ok(article_page())})
    stats = run_ingest(acts(), opts, fetcher=fetcher)
    assert stats.processed == 1
    assert fetcher.calls == ['https://example.org/a']


def test_resume_skips_existing_seeds(opts):
    existing = DocumentSeed(id='law-a', title='Luật A', short_name='A')
    write_seed(existing, opts.seed_dir)
    opts.resume = True
    fetcher = FakeFetcher({'https://example.org/b': NetworkError('https://example.org/b', 3)})
    stats = run_ingest(acts(), opts, fetcher=fetcher)
    assert stats.resumed == 1
    assert stats.processed == 2
    assert fetcher.calls == ['https://example.org/b']


def test_skip_fetch_parses_cached_source(opts):
    os.makedirs(opts.source_dir, exist_ok=True)
    with open(os.path.join(opts.source_dir, 'law-a.html'), 'w', encoding='utf-8') as f:
        f.write(article_page(10))
    opts.skip_fetch = True
    stats = run_ingest(acts(), opts)
    statuses = {r['id']: r['status'] for r in stats.report}
    assert statuses == {'law-a': 'OK', 'law-b': 'metadata'}
    assert len(read_seed(seed_path(opts.seed_dir, 'law-a')).provisions) == 10


def test_census_records_ingestion(opts):
    with open(opts.census_path, 'w', encoding='utf-8') as f:
        json.dump({'laws': [], 'stats': {'total': 2}}, f)
    fetcher = FakeFetcher({
        'https://example.org/a': ok(article_page()),
        'https://example.org/b': NetworkError('https://example.org/b', 3),
    })
    run_ingest(acts(), opts, fetcher=fetcher)
    with open(opts.census_path, encoding='utf-8') as f:
        census = json.load(f)
    assert census['ingestion']['total_laws'] == 2
    assert census['ingestion']['total_provisions'] == 12
    assert census['ingestion']['coverage_pct'] == 100.0
    assert 'completed_at' in census['ingestion']


def test_write_seed_is_atomic(tmp_path):
    seed = DocumentSeed(id='x', title='X')
    path = write_seed(seed, str(tmp_path))
    assert os.listdir(tmp_path) == ['x.json']
    assert read_seed(path).title == 'X'


def test_read_seed_rejects_garbage(tmp_path):
    bad = tmp_path / 'bad.json'
    bad.write_text('{not json', encoding='utf-8')
    assert read_seed(str(bad)) is None
