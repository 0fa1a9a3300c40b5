"""
Core Application - Infrastructure & Base Classes

Generic building blocks used by the marketplace apps (accounts, catalog,
orders, payments, disputes, contracts). No domain logic lives here.

Models (core.models):
    - BaseModel: Abstract model with timestamps
    - AppendOnlyModel: Abstract insert-only model for ledgers and history

Model Mixins (core.model_mixins):
    - UUIDPrimaryKeyMixin, VersionedMixin, MetadataMixin

Services (core.services):
    - BaseService, ServiceResult

Exceptions (core.exceptions):
    - BaseApplicationError and its ValidationError / NotFoundError /
      PermissionDeniedError / ConflictError / ExternalServiceError /
      InvariantViolationError subclasses

Audit (core.protocols, core.audit):
    - AuditSink protocol, LoggingAuditSink, RecordingAuditSink

API helpers (core.api):
    - error_response, StandardPagination
"""
