# Error module for vCD Import/Export
################################################################################
### Copyright 2020-2023 VMware, Inc.
### SPDX-License-Identifier: BSD-2-Clause
################################################################################
import requests
import xmltodict
from xml.parsers.expat import ExpatError

# Short explanations for the status codes the vCD API returns most often
STATUS_EXPLANATIONS = {
    400: 'Bad Request - the request was improperly formatted or contained an invalid parameter.',
    401: 'Unauthorized - the client has not authenticated, or the session has expired.',
    403: 'Forbidden - the client does not have sufficient privileges to execute the request.',
    404: 'Not Found - the object does not exist or is not visible to this user.',
    409: 'Conflict - the request conflicts with the current state of the object.',
    500: 'Internal Server Error - an internal error occurred while executing the request.',
    503: 'Service Unavailable - the vCD cell is temporarily busy or unreachable.',
}


class VCDError(Exception):
    """Base class for every error raised while talking to vCloud Director"""
    def __init__(self, message: str, status_code: int = None, minor_code: str = None, detail: str = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.minor_code = minor_code
        self.detail = detail


class AuthError(VCDError):
    """Session could not be opened or the token was rejected"""


class NotFound(VCDError):
    """The requested object does not exist. Expected by every skip-if-exists check."""


class ReferenceNotFound(VCDError):
    """A cross-object reference could not be resolved on the target"""
    def __init__(self, name: str, object_type: str) -> None:
        super().__init__(f'Reference {object_type} "{name}" could not be found on the target')
        self.name = name
        self.object_type = object_type


class ValidationError(VCDError):
    """The platform rejected the submitted payload"""


class ConflictError(VCDError):
    """The platform reported a conflict, usually a duplicate name"""


class TransportError(VCDError):
    """Network or unexpected HTTP failure"""


class PollTimeout(VCDError):
    """An object or task did not reach the expected state in time"""


def parseErrorBody(text: str) -> dict:
    """Parse a vCD Error document into its code and message fields.
    Returns an empty dict if the body is not a vCD Error document."""
    if not text:
        return {}
    try:
        doc = xmltodict.parse(text)
    except ExpatError:
        return {}
    for key, value in doc.items():
        if key.split(':')[-1] == 'Error' and isinstance(value, dict):
            return {
                'majorErrorCode': value.get('@majorErrorCode'),
                'minorErrorCode': value.get('@minorErrorCode'),
                'message': value.get('@message'),
            }
    return {}


def errorForResponse(response: requests.Response, action: str = 'API call') -> VCDError:
    """Build the matching VCDError for a failed response"""
    code = response.status_code
    fields = parseErrorBody(response.text)
    if fields.get('message'):
        detail = fields['message']
    else:
        detail = response.text
    minor = fields.get('minorErrorCode')
    explanation = STATUS_EXPLANATIONS.get(code, 'Unknown error')
    message = f'{action} failed with status code {code} ({explanation}): {detail}'

    if code in (401, 403):
        return AuthError(message, code, minor, detail)
    if code == 404:
        return NotFound(message, code, minor, detail)
    if code == 409 or minor == 'DUPLICATE_NAME':
        return ConflictError(message, code, minor, detail)
    if code == 400:
        return ValidationError(message, code, minor, detail)
    return TransportError(message, code, minor, detail)
