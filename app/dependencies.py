from fastapi import Request

from app.services.bulk_ingestor import BulkIngestor
from app.services.catalog_reader import CatalogReader


def get_catalog_reader(request: Request) -> CatalogReader:
    return request.app.state.catalog_reader


def get_bulk_ingestor(request: Request) -> BulkIngestor:
    return request.app.state.bulk_ingestor


def get_object_source(request: Request):
    return request.app.state.object_source
