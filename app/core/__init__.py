"""
Core Application - Infrastructure & Base Classes

Generic building blocks shared by the domain apps. Nothing in here knows
about conversations or messages.

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Model Mixins (import from core.model_mixins):
    - SoftDeleteMixin: Soft delete support (is_deleted, deleted_at)

Services (import from core.services):
    - BaseService: Base class for service layer
    - ServiceResult: Standard result wrapper for success/failure handling

Exceptions (import from core.exceptions):
    - BaseApplicationError and the ValidationError / PermissionDeniedError /
      NotFoundError subclasses

Views (import from core.views):
    - health_check: Liveness/readiness probe
"""
