"""
wordle_entropy.py

Command line front end for the entropy solver.

Modes:
default: top guesses by expected information for the full answer list
-history GUESS PATTERN [GUESS PATTERN ...]: narrow the answers with observed
  feedback first, then rank guesses for what is left
-simulate WORD: play a full game against a known answer

Optional:
-backend {scalar,vector,accelerator}: scoring backend (default: vector).
-lookahead 2: re-rank the best guesses with a second adaptive step.
-timeout SECONDS: abort scoring past this deadline.
"""

import argparse
import sys
import time

from entropy_solver.backends import BACKENDS
from entropy_solver.codec import normalize
from entropy_solver.errors import NoSolutionError, SolverError
from entropy_solver.patterns import pattern_to_string
from entropy_solver.solver import LOOKAHEAD_WIDTH, MAX_ROUNDS, Solver, SolverConfig
from entropy_solver.words import ALLOWED_PATH, ANSWERS_PATH, load_words


TOP_GUESSES = 20


def run_top_guesses(solver, answers, candidates, top):
    answer_set = set(answers)

    print(f"Scoring {len(solver.guesses):,} guesses against {len(candidates):,} candidates...")
    start = time.time()
    table = solver.score(candidates)
    elapsed = time.time() - start

    print("\nTop guesses by information gain:")
    print("Legend: word [flag]: entropy bits")
    print("flag: [+] possible answer, [-] guess-only")
    for word, score in table.top(top):
        flag = "+" if word in answer_set else "-"
        print(f"{word} [{flag}]: {score:.4f} bits")

    if len(candidates) == 1 or solver.config.lookahead == 2:
        best = solver.choose_guess(candidates)
    else:
        best = table.best()
    print(f"\nBest guess: {best}")
    print(f"Time: {elapsed * 1000:.0f}ms")


def apply_history(solver, candidates, history):
    if len(history) % 2:
        raise ValueError("-history takes GUESS PATTERN pairs")

    for guess, observed in zip(history[::2], history[1::2]):
        candidates = solver.filter(candidates, guess, observed)
        print(f"{guess.lower()} {observed.upper()}: {len(candidates):,} candidates left")

    if len(candidates) <= 10:
        print("Remaining: " + ", ".join(candidates))
    return candidates


def run_simulation(solver, candidates, answer):
    print(f"Simulating against {answer.lower()}...\n")
    result = solver.play(answer, candidates)

    word_length = candidates.word_length
    for n, rnd in enumerate(result.rounds, start=1):
        print(
            f"{n}. {rnd.guess} {pattern_to_string(rnd.pattern, word_length)} "
            f"({rnd.bits:.2f} bits) -> {rnd.remaining:,} left"
        )

    if result.solved:
        print(f"\nSolved in {len(result.rounds)} guesses.")
    else:
        print(f"\nNot solved within {solver.config.max_rounds} guesses.")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Entropy-maximising Wordle solver."
    )
    parser.add_argument(
        "-backend",
        choices=sorted(BACKENDS),
        default="vector",
        help="Scoring backend (default: vector).",
    )
    parser.add_argument(
        "-answers",
        default=str(ANSWERS_PATH),
        help="Newline-separated possible answers.",
    )
    parser.add_argument(
        "-allowed",
        default=str(ALLOWED_PATH),
        help="Newline-separated valid guesses (answers are always allowed).",
    )
    parser.add_argument(
        "-top",
        type=int,
        default=TOP_GUESSES,
        help=f"Number of ranked guesses to print (default: {TOP_GUESSES}).",
    )
    mode_group = parser.add_mutually_exclusive_group()
    mode_group.add_argument(
        "-history",
        nargs="+",
        metavar="GUESS_OR_PATTERN",
        help="Observed GUESS PATTERN pairs, pattern as G/Y/B or 2/1/0.",
    )
    mode_group.add_argument(
        "-simulate",
        metavar="WORD",
        help="Play a full game against this answer.",
    )
    parser.add_argument(
        "-lookahead",
        type=int,
        choices=(1, 2),
        default=1,
        help="1 for greedy entropy, 2 for a second adaptive step (default: 1).",
    )
    parser.add_argument(
        "-lookahead-width",
        type=int,
        default=LOOKAHEAD_WIDTH,
        help=f"Guesses re-ranked by -lookahead 2 (default: {LOOKAHEAD_WIDTH}).",
    )
    parser.add_argument(
        "-workers",
        type=int,
        default=None,
        help="Worker processes for the vector backend (default: CPU count).",
    )
    parser.add_argument(
        "-timeout",
        type=float,
        default=None,
        help="Abort a scoring call after this many seconds.",
    )
    parser.add_argument(
        "-max-rounds",
        type=int,
        default=MAX_ROUNDS,
        help=f"Guess limit for -simulate (default: {MAX_ROUNDS}).",
    )
    parser.add_argument(
        "-progress",
        action="store_true",
        help="Show progress bars while scoring.",
    )
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    try:
        answers, allowed = load_words(args.answers, args.allowed)
    except (OSError, ValueError) as exc:
        raise SystemExit(str(exc)) from exc

    try:
        config = SolverConfig(
            backend=args.backend,
            max_rounds=args.max_rounds,
            timeout=args.timeout,
            lookahead=args.lookahead,
            lookahead_width=args.lookahead_width,
            workers=args.workers,
            progress=args.progress,
        )
        solver = Solver(allowed, config)
        candidates = answers

        if args.simulate is not None:
            answer = normalize(args.simulate, candidates.word_length)
            if answer not in candidates:
                raise SystemExit(f"{answer!r} is not in the answer list {args.answers}")
            run_simulation(solver, candidates, answer)
            return

        if args.history:
            candidates = apply_history(solver, candidates, args.history)

        run_top_guesses(solver, answers, candidates, args.top)
    except NoSolutionError as exc:
        raise SystemExit(f"Inconsistent feedback: {exc}") from exc
    except (SolverError, ValueError) as exc:
        raise SystemExit(str(exc)) from exc


if __name__ == "__main__":
    sys.exit(main())
