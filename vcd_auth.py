## API authentication module for vCloud Director

################################################################################
### Copyright 2020-2023 VMware, Inc.
### SPDX-License-Identifier: BSD-2-Clause
################################################################################

import requests
from pyvcloud.vcd.client import Client

from vcd_errors import AuthError, TransportError, errorForResponse
from vcd_log import getLogger

logger = getLogger()

TOKEN_HEADER = 'x-vcloud-authorization'


class VCDSession:
    """An authenticated session against one vCD instance"""
    def __init__(self, base_url: str, api_version: str, ssl_verify: bool = True) -> None:
        self.base_url = base_url.rstrip('/')
        self.api_version = api_version
        self.ssl_verify = ssl_verify
        self.access_token = None
        self.username = None
        self.org = None
        self._pyvcloud_client = None

    @property
    def api_url(self) -> str:
        return f'{self.base_url}/api'

    @property
    def is_open(self) -> bool:
        return self.access_token is not None

    def headers(self, content_type: str = None, version: str = None) -> dict:
        """Headers for every call made with this session"""
        myHeader = {'Accept': f'application/*+xml;version={version or self.api_version}'}
        if self.access_token is not None:
            myHeader[TOKEN_HEADER] = self.access_token
        if content_type is not None:
            myHeader['Content-Type'] = content_type
        return myHeader

    def getAccessToken(self, username: str, org: str, password: str) -> str:
        """Logs in and keeps the session token"""
        self.username = username
        self.org = org
        myURL = f'{self.api_url}/sessions'
        try:
            response = requests.post(myURL, headers=self.headers(), auth=(f'{username}@{org}', password),
                                     verify=self.ssl_verify)
        except requests.exceptions.RequestException as e:
            raise TransportError(f'Unable to reach {self.base_url}: {e}')

        if response.status_code != 200:
            error = errorForResponse(response, f'Login to {self.base_url}')
            raise AuthError(error.message, error.status_code, error.minor_code, error.detail)

        self.access_token = response.headers.get(TOKEN_HEADER)
        if self.access_token is None:
            raise AuthError(f'Login to {self.base_url} returned no {TOKEN_HEADER} header')
        return self.access_token

    def getPyvcloudClient(self) -> Client:
        """A pyvcloud client sharing this session's token"""
        if self._pyvcloud_client is None:
            client = Client(self.base_url, api_version=self.api_version, verify_ssl_certs=self.ssl_verify)
            client.rehydrate_from_token(self.access_token)
            self._pyvcloud_client = client
        return self._pyvcloud_client

    def __repr__(self) -> str:
        return f'VCDSession({self.username}@{self.org} on {self.base_url})'


def openSession(endpoint: str, username: str, org: str, password: str, api_version: str,
                ssl_verify: bool = True) -> VCDSession:
    """Open an authenticated session. Raises AuthError or TransportError, never retries."""
    session = VCDSession(endpoint, api_version, ssl_verify)
    session.getAccessToken(username, org, password)
    logger.info('Logged in to %s as %s@%s', session.base_url, username, org)
    return session


def closeSession(session: VCDSession) -> None:
    """Best-effort logout. Failures are logged, never raised."""
    if session is None or not session.is_open:
        return
    try:
        response = requests.delete(f'{session.api_url}/session', headers=session.headers(),
                                   verify=session.ssl_verify)
        if response.status_code not in (200, 204):
            logger.warning('Logout from %s returned status %s', session.base_url, response.status_code)
        else:
            logger.info('Logged out of %s', session.base_url)
    except requests.exceptions.RequestException as e:
        logger.warning('Logout from %s failed: %s', session.base_url, e)
    session.access_token = None
    session._pyvcloud_client = None
