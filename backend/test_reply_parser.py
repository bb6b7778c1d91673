"""
Reply parser: plain answers, bill updates and malformed blocks.
"""
import pytest

from ai.reply_parser import find_json_block, parse_model_reply, strip_json_block
from ai.reply_schema import ReplyKind
from app.core.exceptions import ParseError

BILL_REPLY = """Great, using MRP as the selling price.

```json
[
  {"name": "Dolo 650", "stock": 30, "price": 3.0, "usage": "Fever", "lowStockThreshold": 5},
  {"name": "ORS", "stock": 20, "price": 21, "usage": "Dehydration", "lowStockThreshold": 4}
]
```
"""


def test_plain_text_reply():
    reply = parse_model_reply("Paracetamol is used for fever and mild pain.")

    assert reply.kind == ReplyKind.TEXT
    assert reply.items == []
    assert not reply.has_update


def test_reply_with_update():
    reply = parse_model_reply(BILL_REPLY)

    assert reply.kind == ReplyKind.TEXT_WITH_UPDATE
    assert reply.has_update
    assert [i.name for i in reply.items] == ["Dolo 650", "ORS"]
    assert reply.items[0].low_stock_threshold == 5
    assert "```" not in reply.text
    assert reply.text.startswith("Great, using MRP")


def test_items_wrapper_object_is_accepted():
    reply = parse_model_reply('```json\n{"items": [{"name": "ORS", "stock": 2}]}\n```')

    assert reply.items[0].name == "ORS"
    assert reply.items[0].price is None


def test_uppercase_fence_tag():
    assert find_json_block('```JSON\n[]\n```') == "[]"


@pytest.mark.parametrize("text", [
    '```json\n[{"name": "ORS", "stock": 2,}]\n```',  # trailing comma
    '```json\n"just a string"\n```',
    '```json\n[{"stock": 2}]\n```',  # missing name
    '```json\n[{"name": "ORS", "stock": -1}]\n```',
    '```json\n[{"name": "   ", "stock": 1}]\n```',
])
def test_malformed_block_raises_parse_error(text):
    with pytest.raises(ParseError):
        parse_model_reply(text)


def test_strip_json_block():
    assert strip_json_block(BILL_REPLY) == "Great, using MRP as the selling price."
