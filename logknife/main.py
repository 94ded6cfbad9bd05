import asyncio
import logging
import os
import sys

from .errors import ConfigurationError, OpenError

log = logging.getLogger()


def setup_logging(is_debug):
    """
    Configure logging based on --debug in sys.argv
    :param is_debug:
    """
    root = logging.getLogger()
    [root.removeHandler(h) for h in root.handlers[:]]
    [root.removeFilter(f) for f in root.filters[:]]
    logging.basicConfig(
        format='[%(threadName)s][%(levelname)s] %(module)s:%(funcName)s:%('
               'lineno)s %(message)s',
        level=logging.DEBUG if is_debug else logging.INFO,
        stream=sys.stderr,
    )


def exception_handler(loop, ctx):
    """
    context is a dict object containing the following keys (new keys may be
            introduced in future Python versions):
    'message': Error message;
    'exception' (optional): Exception object;
    'future'    (optional): asyncio.Future instance;
    'task'      (optional): asyncio.Task instance;
    'handle'    (optional): asyncio.Handle instance;
    """
    log.error('Unhandled exception: ' + ctx['message'],
              exc_info=ctx.get('exception'))


def silence_stdout():
    """point stdout at devnull so the final flush at exit cannot fail"""
    try:
        devnull = os.open(os.devnull, os.O_WRONLY)
        os.dup2(devnull, sys.stdout.fileno())
        os.close(devnull)
    except (OSError, ValueError) as e:
        log.debug('cannot redirect stdout: %s', e)


async def async_main(runtime):
    """
    async main follows runtime.path until cancelled
    """
    from .engine import FollowService

    loop = asyncio.get_running_loop()
    loop.set_exception_handler(exception_handler)
    service = FollowService(runtime)
    try:
        await service.run()
    finally:
        service.close()
        log.debug('close async loop')


def main(argv=None):
    """
    Entry point, returns the process exit status:
    0 interrupted or reader went away, 1 file cannot be opened, 2 bad configuration
    """
    args = sys.argv[1:] if argv is None else argv
    setup_logging('--debug' in args)

    from .config import argv_parse
    try:
        runtime = argv_parse(argv)
        setup_logging(runtime.debug)
        log.debug('runtime %r', runtime)
        asyncio.run(async_main(runtime))
    except ConfigurationError as e:
        log.error('%s', e)
        return 2
    except OpenError as e:
        log.error('%s', e)
        return 1
    except BrokenPipeError:
        log.debug('stdout closed')
        silence_stdout()
    except KeyboardInterrupt:
        pass
    return 0
