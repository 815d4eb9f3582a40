from __future__ import annotations

import asyncio
import json

import httpx

from mpx.services import deep_parse_json

BASE_URL = "https://mp.example.test/ministryplatformapi"


def test_deep_parse_json_decodes_nested_strings():
    nested = json.dumps({"Events": json.dumps([{"Event_ID": 1, "Tags": '["a","b"]'}])})

    assert deep_parse_json(nested) == {"Events": [{"Event_ID": 1, "Tags": ["a", "b"]}]}
    assert deep_parse_json("plain text") == "plain text"
    assert deep_parse_json([1, "2", None]) == [1, 2, None]


def test_get_procedures_with_search(respx_mock, make_helper):
    route = respx_mock.get(f"{BASE_URL}/procs").mock(
        return_value=httpx.Response(
            200,
            json=[
                {
                    "Name": "api_Custom_GetEvents",
                    "Parameters": [{"Name": "@DomainID", "DataType": "Integer32", "Direction": "Input"}],
                }
            ],
        )
    )
    mp = make_helper()

    async def scenario():
        async with mp:
            return await mp.get_procedures("api_Custom")

    procs = asyncio.run(scenario())

    assert procs[0].Name == "api_Custom_GetEvents"
    assert procs[0].Parameters[0].DataType == "Integer32"
    assert route.calls.last.request.url.params["$search"] == "api_Custom"


def test_execute_procedure_returns_result_sets(respx_mock, make_helper):
    route = respx_mock.get(f"{BASE_URL}/procs/api_Custom_GetEvents").mock(
        return_value=httpx.Response(200, json=[[{"Event_ID": 1}], [{"Total": 1}]])
    )
    mp = make_helper()

    async def scenario():
        async with mp:
            return await mp.execute_procedure("api_Custom_GetEvents", {"@DomainID": 1})

    result = asyncio.run(scenario())

    assert result == [[{"Event_ID": 1}], [{"Total": 1}]]
    assert route.calls.last.request.url.params["@DomainID"] == "1"


def test_execute_procedure_with_body_posts_parameters(respx_mock, make_helper):
    route = respx_mock.post(f"{BASE_URL}/procs/api_Custom_Save").mock(
        return_value=httpx.Response(200, json=[[]])
    )
    mp = make_helper()

    async def scenario():
        async with mp:
            return await mp.execute_procedure_with_body("api_Custom_Save", {"@Name": "x"})

    assert asyncio.run(scenario()) == [[]]
    assert json.loads(route.calls.last.request.content) == {"@Name": "x"}


def test_execute_json_procedure_decodes_first_row(respx_mock, make_helper):
    document = {"Groups": json.dumps([{"Group_ID": 4}])}
    respx_mock.post(f"{BASE_URL}/procs/api_Custom_Groups").mock(
        return_value=httpx.Response(200, json=[[{"JsonResult": json.dumps(document)}]])
    )
    mp = make_helper()

    async def scenario():
        async with mp:
            return await mp.execute_json_procedure("api_Custom_Groups")

    assert asyncio.run(scenario()) == {"Groups": [{"Group_ID": 4}]}


def test_execute_json_procedure_without_rows_returns_none(respx_mock, make_helper):
    respx_mock.post(f"{BASE_URL}/procs/api_Custom_Groups").mock(
        return_value=httpx.Response(200, json=[[]])
    )
    mp = make_helper()

    async def scenario():
        async with mp:
            return await mp.execute_json_procedure("api_Custom_Groups", {"@Id": 1})

    assert asyncio.run(scenario()) is None
