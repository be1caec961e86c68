"""
Catch the Bone - reaction time task

A bone appears after a random wait. Press SPACE as soon as it appears:
responses faster than your running median (+100 ms) earn 3 points, slower
ones earn 1, and pressing before the bone appears costs 2 points.

Run with: python experiment.py
"""
from psychopy import visual, core, event, gui, logging
import os
import platform

from config import DEFAULT_PARAMS, DISPLAY
from errors import ConfigurationError
from isi_schedule import save_schedule, summarise_schedule
from recorder import SessionMetadata, generate_session_id, save_session
from analysis import summarise_session, plot_reaction_times
from trial_clock import TrialClock
from trial_machine import new_session, SessionComplete

# ----- Folder Setup -----
_thisDir = os.path.dirname(os.path.abspath(__file__))
DATA_FOLDER = os.path.join(_thisDir, 'data')
STIMULI_FOLDER = os.path.join(_thisDir, 'stimuli')


# ----- Experiment Interface -----
def show_experiment_info_dialog():
    """
    Display dialog to gather participant name and session settings.

    Returns:
    dict: Experiment information and settings
    bool: Whether the dialog was OK'd or canceled
    """
    exp_info = {
        'name': '',
        'isi_low': DEFAULT_PARAMS['isi_low'],
        'isi_high': DEFAULT_PARAMS['isi_high'],
        'isi_step': DEFAULT_PARAMS['isi_step'],
        'isi_rep': DEFAULT_PARAMS['isi_rep'],
        'trial_limit': DEFAULT_PARAMS['trial_limit'],
        'debug_mode': False
    }

    dlg = gui.DlgFromDict(
        dictionary=exp_info,
        title='Catch the Bone',
        order=['name', 'isi_low', 'isi_high', 'isi_step', 'isi_rep', 'trial_limit', 'debug_mode']
    )

    if dlg.OK:
        exp_info['name'] = exp_info['name'].strip() or "No Name"
        return exp_info, True
    return None, False


def session_overrides(exp_info):
    """Pick the session parameters out of the dialog values."""
    return {key: exp_info[key] for key in ('isi_low', 'isi_high', 'isi_step', 'isi_rep', 'trial_limit')}


def create_bone(win, scale):
    """
    Create the bone stimulus, falling back to a plain bar if the image is missing.

    Parameters:
    win (visual.Window): PsychoPy window
    scale (float): Display size of the bone in height units

    Returns:
    visual stimulus: The bone
    """
    image_path = os.path.join(STIMULI_FOLDER, DISPLAY['bone_image'])
    if os.path.exists(image_path):
        return visual.ImageStim(win=win, name='bone', image=image_path, size=(scale, scale / 2))

    logging.log(level=logging.WARNING, msg=f"Bone image not found at {image_path}, drawing a bar")
    return visual.Rect(win=win, name='bone', width=scale, height=scale / 3,
                       fillColor='white', lineColor='white')


def save_and_quit(win, machine, early_exit=False):
    """
    Save all data and exit the experiment gracefully.

    Parameters:
    win (visual.Window): PsychoPy window
    machine (TrialStateMachine): The running (or completed) session
    early_exit (bool): Whether this is an early exit
    """
    try:
        metadata = machine.metadata
        records = machine.records
        if early_exit:
            metadata.mark_end()
            metadata.name = f"{metadata.name}_early_exit"

        save_session(metadata, records, DATA_FOLDER)

        if records:
            stats = summarise_session(records)
            logging.log(level=logging.INFO, msg=f"Session summary: {stats}")
            plot_reaction_times(records, os.path.join(
                DATA_FOLDER, f"{metadata.name}_{metadata.id}_rts.png"))

        # Final score handed over for the player's records
        logging.log(level=logging.INFO, msg=f"Final score: {machine.state.score}")

        if not win.closed:
            if early_exit:
                msg = "Game exited early.\nYour data has been saved.\n\nPress any key to close."
            else:
                msg = f"Well done!\n\nFinal score: {machine.state.score}\n\nPress any key to exit."
            visual.TextStim(win=win, text=msg, height=0.07, color='white').draw()
            win.flip()
            event.waitKeys()

    except (OSError, ValueError) as e:
        logging.log(level=logging.ERROR, msg=f"Error during save_and_quit: {e}")
    finally:
        if not win.closed:
            win.close()
        core.quit()


def run_experiment(exp_info):
    """
    Run the task: one frame loop driving the trial state machine.

    Parameters:
    exp_info (dict): Experiment information and settings
    """
    if not os.path.exists(DATA_FOLDER):
        os.makedirs(DATA_FOLDER)

    log_file = os.path.join(DATA_FOLDER, f"{exp_info['name']}_log.txt")
    logging.console.setLevel(logging.WARNING)
    logging.LogFile(log_file, level=logging.INFO)

    metadata = SessionMetadata(id=generate_session_id(), name=exp_info['name'],
                               userAgent=platform.platform())
    try:
        machine = new_session(session_overrides(exp_info), metadata=metadata, clock=TrialClock())
    except ConfigurationError as e:
        logging.log(level=logging.ERROR, msg=f"Invalid session settings: {e}")
        print(f"Invalid session settings: {e}")
        return

    logging.log(level=logging.INFO, msg=f"ISI schedule: {summarise_schedule(machine.schedule)}")
    save_schedule(machine.schedule,
                  os.path.join(DATA_FOLDER, f"{metadata.name}_{metadata.id}_schedule.json"),
                  seed=machine.params.get('seed'))

    win = visual.Window(
        size=DISPLAY['size'],
        fullscr=not exp_info['debug_mode'],
        allowGUI=False,
        monitor='testMonitor',
        color=DISPLAY['background'],
        units='height'
    )

    bone = create_bone(win, machine.params['stimulus_show_scale'])
    score_text = visual.TextStim(win=win, name='score', text="Score: 0",
                                 pos=DISPLAY['score_pos'], height=DISPLAY['text_height'], color='white')
    feedback_text = visual.TextStim(win=win, name='feedback', text="",
                                    pos=DISPLAY['feedback_pos'], height=DISPLAY['text_height'],
                                    color='white', colorSpace='rgb1')
    instruction_text = visual.TextStim(
        win=win,
        name='instructions',
        text=(
            "Help Doggo catch the bone!\n\n"
            "Press SPACE as soon as the bone appears.\n"
            "Quick catches earn more points,\n"
            "but pressing too early loses points.\n\n"
            "Press SPACE to begin."
        ),
        height=DISPLAY['text_height'],
        wrapWidth=1.2,
        color='white'
    )

    instruction_text.draw()
    win.flip()
    event.waitKeys(keyList=['space'])
    event.clearEvents()

    # The clock started with the session; restart trial 0 now the player is ready
    machine.clock.start_isi_phase()

    while not machine.is_complete:
        keys = event.getKeys(keyList=['space', 'escape', 'q'])
        if 'escape' in keys or 'q' in keys:
            save_and_quit(win, machine, early_exit=True)

        # Coalesce all presses in this frame into a single input
        outcome = machine.tick('space' in keys)

        state = machine.state
        score_text.text = f"Score: {state.score}"
        if state.feedback is None:
            feedback_text.text = ""
        else:
            feedback_text.text = state.feedback.text
            feedback_text.color = state.feedback.color

        if state.stimulus_visible:
            bone.draw()
        score_text.draw()
        feedback_text.draw()
        win.flip()

        if isinstance(outcome, SessionComplete):
            logging.log(level=logging.INFO,
                        msg=f"Session complete with {len(outcome.all_records)} trials")

    save_and_quit(win, machine, early_exit=False)


# ----- Main Program -----

if __name__ == "__main__":
    exp_info, dialog_ok = show_experiment_info_dialog()

    if dialog_ok:
        run_experiment(exp_info)
    else:
        print("Experiment cancelled by user.")
        core.quit()
