from __future__ import annotations

from pathlib import Path

from essay_ingest_core.corpus import CorpusFile, EssayRecord, read_corpus, write_corpus
from essay_ingest_core.models import Chunk, Document


def _document() -> Document:
    return Document(
        title="Naps and alertness",
        url="https://example.org/pmc/9/",
        date="2018 Jul 2",
        authors="Lee K",
        content="Short naps improve alertness. Long naps cause grogginess.",
        token_count=9,
    )


def _chunk(doc: Document) -> Chunk:
    return Chunk.from_document(doc, content=doc.content, content_tokens=doc.token_count)


def test_corpus_totals_tokens_across_essays() -> None:
    doc = _document()
    corpus = CorpusFile.from_essays(
        [EssayRecord.from_document(doc, [_chunk(doc)]), EssayRecord.from_document(doc)]
    )
    assert corpus.tokens == 18
    assert corpus.essays[1].chunks == []


def test_corpus_file_round_trip(tmp_path: Path) -> None:
    doc = _document()
    path = tmp_path / "corpus.json"
    write_corpus(path, CorpusFile.from_essays([EssayRecord.from_document(doc, [_chunk(doc)])]))

    loaded = read_corpus(path)
    essay = loaded.essays[0]
    assert essay.to_document() == doc
    assert essay.to_chunks() == [_chunk(doc)]


def test_reads_files_written_by_the_crawler(tmp_path: Path) -> None:
    path = tmp_path / "pg.json"
    path.write_text(
        """
        {"tokens": 4, "essays": [{
          "title": "T", "url": "https://example.org/1/", "date": "", "authors": "A",
          "content": "Sleep is vital.", "tokens": 4,
          "chunks": [{
            "essay_title": "T", "essay_url": "https://example.org/1/", "essay_date": "",
            "essay_authors": "A", "content": "Sleep is vital.", "content_tokens": 4, "embedding": []
          }]
        }]}
        """,
        encoding="utf-8",
    )

    chunks = read_corpus(path).essays[0].to_chunks()
    assert chunks[0].content == "Sleep is vital."
    assert chunks[0].content_tokens == 4
    assert chunks[0].embedding == ()
