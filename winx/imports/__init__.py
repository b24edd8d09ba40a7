"""Asynchronous bulk employee import from CSV uploads.

Pieces, leaf to root:
  - ``files.UploadStore``          stores, streams and deletes uploads
  - ``gateway.EmployeeGateway``    user lookups + atomic batch inserts
  - ``validator.RowValidator``     one CSV row → ``EmployeeRecord`` or rejection
  - ``runner.ImportJobRunner``     streams a file through the validator in batches
  - ``dispatcher.ImportDispatcher`` asyncio queue + worker pool running the jobs
"""
