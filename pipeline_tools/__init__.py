"""
Script: pipeline_tools package
What: Holds Python helpers for container-pipeline workflow steps.
Doing: Groups CLI entrypoints (AWS login, ECR push, SemVer) and shared parsing/utility code.
Why: Keeps workflow logic readable and testable instead of spreading it across shell steps.
Goal: Provide a clear, maintainable home for image build, push, and versioning logic.
"""
