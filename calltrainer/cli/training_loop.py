"""
calltrainer/cli/training_loop.py

Terminal front end for a practice call.

Enter starts talking, Enter again sends the line to the patient.
'c' + Enter throws the current recording away, 'q' + Enter ends the call,
's' + Enter reopens clinic setup.
"""

import argparse
import logging

from calltrainer import config
from calltrainer.cli.api_client import TurnClient
from calltrainer.cli.microphone import SoundDeviceMicrophone
from calltrainer.cli.mode_menu import pick_mode
from calltrainer.cli.playback import PygamePlayer
from calltrainer.cli.recorder import RecorderState, RecordingSession
from calltrainer.errors import ClientEnvironmentError
from calltrainer.models import Mode
from calltrainer.services.profile_store import ProfileStore
from calltrainer.ui.setup_form import run_setup_form

logger = logging.getLogger(__name__)


def format_transcript(turns) -> str:
    return "\n".join(f"{'VA' if t.speaker == 'staff' else 'Patient'}: {t.text}" for t in turns)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Practice a new-patient phone call.")
    parser.add_argument("--mode", default=None,
                        help="easy, challenging, skeptical or creepy (unknown values use easy); asks when omitted")
    parser.add_argument("--server", default=config.TRAINER_API_URL, help="call trainer API base URL")
    parser.add_argument("--setup", action="store_true", help="edit the clinic setup before starting")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    config.configure_logging()

    store = ProfileStore()
    if args.setup:
        run_setup_form(store, store.get_profile())

    client = TurnClient(base_url=args.server)
    mode = Mode.coerce(args.mode) if args.mode else pick_mode(client)

    def redirect_to_setup():
        print("Please complete the clinic Setup before training.")
        run_setup_form(store, None)

    session = RecordingSession(
        profiles=store,
        client=client,
        open_microphone=SoundDeviceMicrophone,
        player=PygamePlayer(),
        mode=mode,
        on_redirect=redirect_to_setup,
    )

    profile = store.get_profile()
    print(f"{mode.label} Mode")
    print(f"Clinic: {profile.clinic_name if profile else 'Not set'}")
    print("Press Enter to talk, Enter again to send. 'c' cancels, 's' edits setup, 'q' ends the call.")

    try:
        while True:
            prompt = "[Listening... Enter to stop] " if session.state == RecorderState.RECORDING else "[Enter to talk] "
            cmd = input(prompt).strip().lower()

            if cmd == "q":
                turns = session.end_call()
                if not turns:
                    print("No conversation yet. Try a practice turn first.")
                    continue
                # scoring comes later; just show what was said
                print("Call ended.\n" + format_transcript(turns))
                break

            # one clinic per call
            if cmd == "s" and session.turns:
                print("End the call with 'q' before changing the clinic setup.")
                continue

            try:
                if cmd == "s":
                    session.end_call()
                    run_setup_form(store, store.get_profile())
                    continue

                if cmd == "c":
                    session.cancel_capture()
                    print("Recording discarded.")
                    continue

                if session.state == RecorderState.RECORDING:
                    print("Patient replying...")
                    outcome = session.end_capture()
                    if session.error:
                        print(session.error)
                    if outcome == RecorderState.IDLE and session.turns:
                        print(format_transcript(session.turns[-2:]))
                    continue

                session.begin_capture()
                if session.state == RecorderState.BLOCKED:
                    print(session.error)
            except ClientEnvironmentError as e:
                # microphone trouble; the call itself goes on
                print(e)

    except (KeyboardInterrupt, EOFError):
        print()
    finally:
        session.close()
        client.close()


if __name__ == "__main__":
    main()
