from types import SimpleNamespace

import pytest

from restobot.core.orders import keyboards, texts
from restobot.core.orders.models import CatalogPage, DialogueState
from restobot.core.orders.states import Step


@pytest.mark.parametrize(
    "amount, expected",
    [(0, "0 so'm"), (5000, "5 000 so'm"), (70000, "70 000 so'm"), (1250000, "1 250 000 so'm")],
)
def test_format_price(amount, expected):
    assert texts.format_price(amount) == expected


def test_progress_marks_current_step():
    assert texts.format_progress(Step.AWAITING_PHONE) == "[●●○○] 2-qadam / 4"


def test_step_prompt_escapes_collected_fields():
    state = DialogueState(conversation_id="1", step=Step.AWAITING_PHONE, name="<b>Ali</b>")
    prompt = texts.step_prompt(state, error="Noto'g'ri <raqam>")

    assert "&lt;b&gt;Ali&lt;/b&gt;" in prompt
    assert "&lt;raqam&gt;" in prompt
    assert texts.STEP_PROMPTS[Step.AWAITING_PHONE] in prompt


def test_category_navigation():
    products = [SimpleNamespace(id=i, name=f"Taom {i}") for i in (1, 2)]
    page = CatalogPage(items=products, offset=2, has_more=True, page_size=2)

    rows = keyboards.category_keyboard(7, page)

    assert rows[0] == [("Taom 1", "prod:1")]
    nav = [data for row in rows for _, data in row if data.startswith("cat:")]
    assert nav == ["cat:7:0", "cat:7:4"]


def test_first_page_has_no_back_button():
    page = CatalogPage(items=[SimpleNamespace(id=1, name="Osh")], offset=0, has_more=False)

    rows = keyboards.category_keyboard(7, page)

    assert not [data for row in rows for _, data in row if data.startswith("cat:")]
