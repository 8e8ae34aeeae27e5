from app.bulk_import.emission import DocumentEmitter
from app.bulk_import.enrichment import EnrichmentPipeline
from app.bulk_import.ingestion import ingest, parse_table
from app.bulk_import.jobs import BatchJob
from app.bulk_import.review import ReviewStore

__all__ = ["BatchJob", "DocumentEmitter", "EnrichmentPipeline", "ReviewStore", "ingest", "parse_table"]
