import asyncio
import sys
import os

# Add project root to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.config import ClientSettings
from core.exceptions import QuizError, SubmissionError
from core.logger import setup_logging
from client.api import QuizApiClient
from client.cache import RedisSnapshotStore
from client.session import SessionController
from client.timer import format_time, urgency
from schemas.question import McqQuestion, SyntaxQuestion, PARTICIPANT_SECTIONS

HELP = "Commands: n(ext), p(rev), g <num>, a (answer), s(ubmit), q(uit)"


async def ask(prompt: str) -> str:
    return (await asyncio.to_thread(input, prompt)).strip()


async def read_block(prompt: str) -> str:
    print(prompt + " (finish with an empty line)")
    lines = []
    while True:
        line = await asyncio.to_thread(input)
        if not line:
            return "\n".join(lines)
        lines.append(line)


def show(session: SessionController):
    q = session.current_question
    left = session.timer.time_left()
    print(f"\n⏱  {format_time(left)} [{urgency(left)}]   {session.answered_count()}/{len(session.questions)} answered")
    print(f"#{q.order} [{q.type}] {q.title} ({q.points} pts)")
    print(q.description)
    if isinstance(q, SyntaxQuestion):
        print(q.buggy_code)
    elif isinstance(q, McqQuestion):
        print(q.code_snippet)
        for i, option in enumerate(q.options):
            print(f"  {i}) {option}")
    else:
        print(q.scenario)
    current = session.answers.get(q.id)
    if current:
        print(f"Your answer: {current}")


async def take_challenge():
    settings = ClientSettings()
    if len(sys.argv) > 1 and sys.argv[1].startswith("http"):
        settings = ClientSettings(API_URL=sys.argv[1])
    setup_logging("WARNING")

    done = asyncio.Event()
    store = RedisSnapshotStore.from_url(settings.REDIS_URL)

    async with QuizApiClient(settings) as api:
        session = SessionController.from_settings(api, store, settings, on_complete=lambda _: done.set())

        section = await ask(f"Section {'/'.join(PARTICIPANT_SECTIONS)}: ")
        try:
            session.select_section(section)
            await session.register(await ask("Name: "), await ask("Student ID: "))
            result = await session.load_questions()
        except QuizError as e:
            print(f"❌ {e}")
            await store.close()
            return

        if result.degraded:
            print("⚠️  Could not refresh questions, using a saved copy.")
        print(HELP)

        try:
            while not done.is_set():
                show(session)
                command = await ask("> ")
                if done.is_set():
                    break
                if command == "n":
                    session.next_question()
                elif command == "p":
                    session.previous_question()
                elif command.startswith("g "):
                    try:
                        session.go_to(int(command[2:]) - 1)
                    except (ValueError, QuizError) as e:
                        print(f"❌ {e}")
                elif command == "a":
                    q = session.current_question
                    value = await read_block("Answer") if isinstance(q, SyntaxQuestion) else await ask("Answer: ")
                    if not done.is_set():
                        session.set_answer(q.id, value)
                elif command == "s":
                    try:
                        await session.submit()
                    except SubmissionError as e:
                        print(f"❌ {e}")
                elif command == "q":
                    break
                else:
                    print(HELP)
        finally:
            session.teardown()
            await store.close()

    results = session.take_results()
    if results:
        s = results.summary
        print("\n====== RESULTS ======")
        print(f"{results.name}: {results.score}/{results.total_points} ({s.percentage}%)")
        print(f"Correct {s.correct} | Wrong {s.wrong} | Skipped {s.skipped}")
        print(f"Time: {format_time(results.time_taken)}")


if __name__ == "__main__":
    if os.name == 'nt':
        asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())
    asyncio.run(take_challenge())
