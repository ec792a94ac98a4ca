"""
Core Package.

Contains the porting pipeline:
- Pattern extraction over addon scripts
- Shared library resolution
- Hardcoded class fixing (CSS)
- Dynamic load import rewriting
- The orchestration engine and filesystem staging
"""
