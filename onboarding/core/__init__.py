"""Core Onboarding Logic Module

This module provides the client library for the cloud onboarding (CCE)
platform, independent of any CLI or framework.

Module Structure:
    - cce/          : HTTP client, AWS/Azure services, reconciliation and
                      organization-scan workflows
    - validators.py : Input validation for onboarding requests

Usage Pattern:
    from onboarding.core.cce import CCEClient, AWSService, ServiceInput

    service = AWSService(CCEClient(token))
    account = service.update_account("abc123", [ServiceInput("dpa"), ServiceInput("sca")])

Error Handling:
    Every failure raised by the library derives from ``CCEError``; see
    ``onboarding.core.cce.exceptions`` for the hierarchy.
"""
