"""
Service Layer

Plain functions over a SQLAlchemy Session. Each public function is one
operation of the provisioning and trust core: it validates, performs its
writes as one transaction, commits, and then records an audit entry.
Failures are raised as tenancy.core.exceptions.AppError subclasses.
"""
