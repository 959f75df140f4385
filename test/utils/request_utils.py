import json
import os
from typing import Optional

import jwt
from chalice.local import LocalGatewayException


def make_token(user_id: str) -> str:
    return jwt.encode({'sub': user_id, 'token_use': 'id'}, os.environ['JWT_SECRET'], algorithm='HS256')


def make_request(chalice_gateway, endpoint: str = '/', method: str = 'GET',
                 query: Optional[str] = None, json_body=None, token=None, headers=None, body=None) -> dict:
    """Request through the local gateway, authorizer rejections are returned as responses too"""
    request_headers = {'Content-Type': 'application/json', 'Host': 'test-domain.com'}
    if token:
        request_headers['Authorization'] = f'Bearer {token}'
    request_headers.update(headers or {})
    if body is None:
        body = json.dumps(json_body) if json_body is not None else b''
    try:
        return chalice_gateway.handle_request(
            method=method,
            path=f"{endpoint}?{query}" if query else f"{endpoint}",
            headers=request_headers,
            body=body
        )
    except LocalGatewayException as error:
        return {'statusCode': error.CODE, 'headers': error.headers, 'body': error.body}


def body_of(response) -> dict:
    return json.loads(response['body'])
