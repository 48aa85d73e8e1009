from switchyard.interrupt import Interrupt


def test_interrupt_create():
    interrupt = Interrupt.create("tools", "before", 3)

    assert interrupt == Interrupt(id="v1:before:tools:3", node="tools", kind="before", value=None)


def test_interrupt_to_dict():
    interrupt = Interrupt.create("review", "node", 2, value={"question": "approve?"})

    tru_dict = interrupt.to_dict()
    exp_dict = {"id": "v1:node:review:2", "node": "review", "kind": "node", "value": {"question": "approve?"}}
    assert tru_dict == exp_dict


def test_interrupt_from_dict():
    data = {"id": "v1:after:agent:1", "node": "agent", "kind": "after", "value": None}

    assert Interrupt.from_dict(data).to_dict() == data
