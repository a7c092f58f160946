from iterm2_harpoon.keys import DEFAULT_BINDINGS, Command, build_bindings, resolve_key


def test_defaults_without_config():
    assert build_bindings(None) == DEFAULT_BINDINGS
    assert build_bindings({}) == DEFAULT_BINDINGS


def test_configured_command_replaces_its_default_keys():
    bindings = build_bindings({"delete": ["x"]})

    assert resolve_key(bindings, "x") is Command.DELETE
    assert resolve_key(bindings, "d") is None
    assert resolve_key(bindings, "a") is Command.ADD_CURRENT


def test_single_key_string_is_accepted():
    bindings = build_bindings({"close": "q"})

    assert resolve_key(bindings, "q") is Command.CLOSE
    assert resolve_key(bindings, "Esc") is None


def test_unknown_command_is_skipped():
    bindings = build_bindings({"explode": ["e"]})

    assert resolve_key(bindings, "e") is None
    assert resolve_key(bindings, "j") is Command.NEXT
