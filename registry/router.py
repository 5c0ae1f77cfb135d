"""
FastAPI Router for Spec Registration and Retrieval.

Provides REST API for:
- Registering entities, features, feature groups and storage
- Getting specs by id (all or nothing)
- Listing every registered spec of a kind
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from core.config import RegistryConfig
from core.exceptions import ErrorClassification, RegistryException
from registry.query import QueryFacade
from registry.service import SpecRegistry
from specs.schemas import (
    EntitiesResponse,
    EntitySpec,
    FeatureGroupSpec,
    FeatureGroupsResponse,
    FeatureSpec,
    FeaturesResponse,
    GetSpecsRequest,
    RegisterEntityResponse,
    RegisterFeatureGroupResponse,
    RegisterFeatureResponse,
    RegisterStorageResponse,
    StorageResponse,
    StorageSpec,
)
from storage.database import get_config, get_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/specs", tags=["Specs"])


# =============================================================
# HELPER: Database dependency
# =============================================================

def get_db():
    db = get_session()
    try:
        yield db
    finally:
        db.close()


def get_registry_config() -> RegistryConfig:
    return get_config()


# =============================================================
# HELPER: Error mapping
# =============================================================

STATUS_CODES = {
    ErrorClassification.BAD_REQUEST: 400,
    ErrorClassification.NOT_FOUND: 404,
    ErrorClassification.CONFLICT: 409,
    ErrorClassification.INTERNAL: 500,
}


def to_http_exception(error: RegistryException) -> HTTPException:
    return HTTPException(
        status_code=STATUS_CODES[error.classification],
        detail=error.message,
    )


# =============================================================
# HELPER: Get service instances
# =============================================================

def get_spec_registry(
    db: Session = Depends(get_db),
    config: RegistryConfig = Depends(get_registry_config),
) -> SpecRegistry:
    return SpecRegistry(db, config=config)


def get_query_facade(db: Session = Depends(get_db)) -> QueryFacade:
    return QueryFacade(db)


# =============================================================
# ENTITY ENDPOINTS
# =============================================================

@router.post("/entities", response_model=RegisterEntityResponse)
def register_entity(
    spec: EntitySpec,
    registry: SpecRegistry = Depends(get_spec_registry),
):
    """Register or overwrite an entity."""
    try:
        return RegisterEntityResponse(entity_name=registry.register_entity(spec))
    except RegistryException as e:
        raise to_http_exception(e)


@router.post("/entities/get", response_model=EntitiesResponse)
def get_entities(
    request: GetSpecsRequest,
    query: QueryFacade = Depends(get_query_facade),
):
    try:
        return EntitiesResponse(entities=query.get_entities(request.ids))
    except RegistryException as e:
        raise to_http_exception(e)


@router.get("/entities", response_model=EntitiesResponse)
def list_entities(query: QueryFacade = Depends(get_query_facade)):
    try:
        return EntitiesResponse(entities=query.list_entities())
    except RegistryException as e:
        raise to_http_exception(e)


# =============================================================
# FEATURE ENDPOINTS
# =============================================================

@router.post("/features", response_model=RegisterFeatureResponse)
def register_feature(
    spec: FeatureSpec,
    registry: SpecRegistry = Depends(get_spec_registry),
):
    """
    Register or overwrite a feature.

    The owning entity must already be registered.
    """
    try:
        return RegisterFeatureResponse(feature_id=registry.register_feature(spec))
    except RegistryException as e:
        raise to_http_exception(e)


@router.post("/features/get", response_model=FeaturesResponse)
def get_features(
    request: GetSpecsRequest,
    query: QueryFacade = Depends(get_query_facade),
):
    try:
        return FeaturesResponse(features=query.get_features(request.ids))
    except RegistryException as e:
        raise to_http_exception(e)


@router.get("/features", response_model=FeaturesResponse)
def list_features(
    entity: Optional[str] = Query(None, description="Only features owned by this entity"),
    query: QueryFacade = Depends(get_query_facade),
):
    try:
        return FeaturesResponse(features=query.list_features(entity))
    except RegistryException as e:
        raise to_http_exception(e)


# =============================================================
# FEATURE GROUP ENDPOINTS
# =============================================================

@router.post("/feature-groups", response_model=RegisterFeatureGroupResponse)
def register_feature_group(
    spec: FeatureGroupSpec,
    registry: SpecRegistry = Depends(get_spec_registry),
):
    try:
        return RegisterFeatureGroupResponse(
            feature_group_id=registry.register_feature_group(spec)
        )
    except RegistryException as e:
        raise to_http_exception(e)


@router.post("/feature-groups/get", response_model=FeatureGroupsResponse)
def get_feature_groups(
    request: GetSpecsRequest,
    query: QueryFacade = Depends(get_query_facade),
):
    try:
        return FeatureGroupsResponse(feature_groups=query.get_feature_groups(request.ids))
    except RegistryException as e:
        raise to_http_exception(e)


@router.get("/feature-groups", response_model=FeatureGroupsResponse)
def list_feature_groups(query: QueryFacade = Depends(get_query_facade)):
    try:
        return FeatureGroupsResponse(feature_groups=query.list_feature_groups())
    except RegistryException as e:
        raise to_http_exception(e)


# =============================================================
# STORAGE ENDPOINTS
# =============================================================

@router.post("/storage", response_model=RegisterStorageResponse)
def register_storage(
    spec: StorageSpec,
    registry: SpecRegistry = Depends(get_spec_registry),
):
    try:
        return RegisterStorageResponse(storage_id=registry.register_storage(spec))
    except RegistryException as e:
        raise to_http_exception(e)


@router.post("/storage/get", response_model=StorageResponse)
def get_storage(
    request: GetSpecsRequest,
    query: QueryFacade = Depends(get_query_facade),
):
    try:
        return StorageResponse(storage_specs=query.get_storage(request.ids))
    except RegistryException as e:
        raise to_http_exception(e)


@router.get("/storage", response_model=StorageResponse)
def list_storage(query: QueryFacade = Depends(get_query_facade)):
    try:
        return StorageResponse(storage_specs=query.list_storage())
    except RegistryException as e:
        raise to_http_exception(e)
