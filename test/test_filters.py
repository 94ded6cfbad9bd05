"""
Test include/exclude filtering
"""

import pytest

from logknife.commands import Include, Exclude
from logknife.filters import should_emit, FilterPipeline
from logknife.matcher import compile_pattern


def patterns(*sources):
    return [compile_pattern(s) for s in sources]


@pytest.mark.parametrize('line', ['', '\n', 'anything\n', 'x'])
def test_no_filters_keep_everything(line):
    assert should_emit(line, [], [])


def test_include_any():
    includes = patterns('error', 'warn')
    assert should_emit('an error here\n', includes, [])
    assert should_emit('a warning\n', includes, [])
    assert not should_emit('all good\n', includes, [])


def test_exclude_wins():
    includes = patterns('error')
    excludes = patterns('healthcheck')
    assert should_emit('error in handler\n', includes, excludes)
    assert not should_emit('error in healthcheck\n', includes, excludes)
    assert not should_emit('healthcheck ok\n', [], excludes)


def test_trailing_eol_ignored():
    includes = patterns('done$')
    assert should_emit('job done\n', includes, [])
    assert should_emit('job done\r\n', includes, [])
    assert not should_emit('job done later\n', includes, [])


def test_case_sensitive_include():
    includes = patterns('error')
    lines = ['a error x\n', 'b ok\n', 'c ERROR y\n']
    assert [ln for ln in lines if should_emit(ln, includes, [])] == \
        ['a error x\n']


def test_pipeline_from_filters():
    filters = [Include('^GET'), Exclude('favicon'), Include('^POST')]
    for f in filters:
        f.compile('builtin')
    pipeline = FilterPipeline.from_filters(filters)
    assert [p.pattern for p in pipeline.includes] == ['^GET', '^POST']
    assert [p.pattern for p in pipeline.excludes] == ['favicon']
    assert pipeline.should_emit('GET /index.html\n')
    assert pipeline.should_emit('POST /login\n')
    assert not pipeline.should_emit('GET /favicon.ico\n')
    assert not pipeline.should_emit('DELETE /x\n')


def test_pipeline_reuses_patterns():
    include = compile_pattern('a')
    pipeline = FilterPipeline([include])
    pipeline.should_emit('a\n')
    pipeline.should_emit('b\n')
    assert pipeline.includes[0] is include
