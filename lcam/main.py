"""Runs .lc files through the lcam pipeline, or starts command-line mode. Also uses error handling context manager.
Called from the lcam executable script.
"""

import argparse

from lcam.lang.error import ErrorHandler
from lcam.lang.session import Session
from lcam.lang.shell import Shell
from lcam.pure.reducer import NormalOrderReducer


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog="lcam", description="typed lambda calculus on a Categorical Abstract Machine")
    parser.add_argument("file", help="file to interpret and run (if empty, goes to command-line mode)", nargs="?")
    parser.add_argument("--trace", action="store_true", help="print every reduction and machine step")
    parser.add_argument("--no-check", dest="check", action="store_false",
                        help="don't cross-check machine results against beta reduction")
    parser.add_argument("--step-limit", type=int, default=None, metavar="N",
                        help="maximum number of machine instructions per term (the cross-check against beta "
                             f"reduction keeps its own limit of {NormalOrderReducer.STEP_LIMIT} reductions and is "
                             "skipped with a warning past it)")
    return parser.parse_args(argv)


def main(argv=None):
    """Runs lcam interpreter. Called from lcam executable script."""
    args = parse_args(argv)

    with ErrorHandler(trace=args.trace) as error_handler:
        if args.file is not None:
            sess = Session(error_handler, args.file, cmd_line=False, check=args.check, step_limit=args.step_limit)
            sess.run()

            for result in sess.results:
                print(result)

        else:
            sess = Session(error_handler, Session.SH_FILE, cmd_line=True, check=args.check, step_limit=args.step_limit)
            Shell(sess).cmdloop()


if __name__ == "__main__":
    main()
