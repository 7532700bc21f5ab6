import re

from hilock.core.appearance import AppearanceResolver
from hilock.core.models import Rule


def test_no_transform_returns_base():
    base = {'face': 'hi-pink'}
    assert AppearanceResolver.resolve(base) is base


def test_transform_output_verbatim():
    base = {'face': 'hi-pink'}
    result = AppearanceResolver.resolve(base, lambda appearance: {'anything': 1})
    assert result == {'anything': 1}


def test_transform_receives_base():
    seen = []
    base = {'face': 'hi-pink'}
    AppearanceResolver.resolve(base, lambda appearance: seen.append(appearance) or appearance)
    assert seen == [base]


def test_resolve_rule():
    rule = Rule(
        rule_id=1,
        pattern='x',
        appearance={'face': 'hi-blue'},
        compiled=re.compile('x'),
        transform=lambda appearance: {**appearance, 'italic': True},
    )
    assert AppearanceResolver.resolve_rule(rule) == {'face': 'hi-blue', 'italic': True}
