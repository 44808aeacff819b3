import json


def body_of(response):
    """Decoded JSON body of a Lambda proxy response."""
    return json.loads(response["body"]) if response["body"] else None


def create_group(lambda_handler, api_gateway_event, test_db, key="myKey", value="true", **extra):
    """Create a toggle in a new group through the create handler."""
    body = {"Key": key, "Value": value, **extra}
    response = lambda_handler(api_gateway_event("POST", "/features", body=body), {}, db_session=test_db)
    assert response["statusCode"] == 201, response["body"]
    return body_of(response)
