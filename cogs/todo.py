"""To-do list cog: slash commands, task modal, confirmations and the live board."""
import discord
from discord.ext import commands, tasks
from discord import app_commands
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from config.config import BOARD_REFRESH_SECONDS
from models.form_result import Cancelled, FormResult, Submitted
from models.task import TaskState
from services.task_list_controller import ActionResult, ActionStatus, TaskListController, TaskView
from utils.logging_util import get_logger

logger = get_logger("todo_cog")

STATE_MARKERS: Dict[TaskState, str] = {
    TaskState.COMPLETED: "✅",
    TaskState.EXPIRED: "🔴",
    TaskState.ACTIVE: "🟡",
}
MAX_BOARD_FIELDS = 25  # Discord embed field limit
MODAL_TIMEOUT_SECONDS = 300
CONFIRM_TIMEOUT_SECONDS = 60


def build_board_embed(rows: List[TaskView]) -> discord.Embed:
    """Render the task list as an embed: one field per task."""
    embed = discord.Embed(title="📈 To-Do List", color=discord.Color.gold())
    if not rows:
        embed.description = "No tasks yet. Use **Add task** or `/add_task` to create one."
        return embed

    for row in rows[:MAX_BOARD_FIELDS]:
        marker = STATE_MARKERS[row.state]
        text = f"~~{row.task.text}~~" if row.task.completed else row.task.text
        embed.add_field(
            name=f"{marker} {text}"[:256],
            value=f"Deadline: {row.deadline_display}\n⏳ {row.countdown}",
            inline=False
        )
    if len(rows) > MAX_BOARD_FIELDS:
        embed.set_footer(text=f"Showing {MAX_BOARD_FIELDS} of {len(rows)} tasks")
    return embed


class TaskFormModal(discord.ui.Modal):
    """Two-field task form (name and deadline)."""

    def __init__(self, title: str, text: str = "", deadline: str = "") -> None:
        super().__init__(title=title, timeout=MODAL_TIMEOUT_SECONDS)
        self.task_text = discord.ui.TextInput(
            label="Task name",
            placeholder="Task name",
            default=text or None,
            max_length=200
        )
        self.deadline = discord.ui.TextInput(
            label="Deadline",
            placeholder="YYYY-MM-DD HH:MM",
            default=deadline or None,
            max_length=32
        )
        self.add_item(self.task_text)
        self.add_item(self.deadline)
        self.result: FormResult = Cancelled()
        self.submit_interaction: Optional[discord.Interaction] = None

    async def on_submit(self, interaction: discord.Interaction) -> None:
        self.result = Submitted(text=self.task_text.value, deadline=self.deadline.value)
        self.submit_interaction = interaction
        # Acknowledge now; the outcome is sent as a followup once the store answers
        await interaction.response.defer(ephemeral=True, thinking=True)


class ConfirmView(discord.ui.View):
    """Yes/Cancel confirmation restricted to the user who asked."""

    def __init__(self, owner_id: int) -> None:
        super().__init__(timeout=CONFIRM_TIMEOUT_SECONDS)
        self.owner_id = owner_id
        self.value: Optional[bool] = None

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        return interaction.user.id == self.owner_id

    @discord.ui.button(label="Yes, delete", style=discord.ButtonStyle.danger)
    async def confirm_button(self, interaction: discord.Interaction, button: discord.ui.Button) -> None:
        self.value = True
        await interaction.response.edit_message(view=None)
        self.stop()

    @discord.ui.button(label="Cancel", style=discord.ButtonStyle.secondary)
    async def cancel_button(self, interaction: discord.Interaction, button: discord.ui.Button) -> None:
        self.value = False
        await interaction.response.edit_message(content="Cancelled.", embed=None, view=None)
        self.stop()


class InteractionUI:
    """Task dialog and notifier bound to one Discord interaction.

    Messages answer the original interaction until a modal is submitted;
    from then on they answer the modal submission.
    """

    def __init__(self, interaction: discord.Interaction) -> None:
        self.interaction = interaction

    async def prompt_task(self, title: str, text: str = "", deadline: str = "") -> FormResult:
        modal = TaskFormModal(title=title, text=text, deadline=deadline)
        await self.interaction.response.send_modal(modal)
        timed_out = await modal.wait()
        if timed_out or modal.submit_interaction is None:
            logger.debug(f"Task form '{title}' dismissed")
            return Cancelled()
        self.interaction = modal.submit_interaction
        return modal.result

    async def confirm(self, title: str, message: str) -> bool:
        view = ConfirmView(owner_id=self.interaction.user.id)
        embed = discord.Embed(title=title, description=message, color=discord.Color.orange())
        await self._send(embed=embed, view=view)
        await view.wait()
        return bool(view.value)

    async def success(self, title: str, message: str) -> None:
        await self._send(embed=discord.Embed(title=title, description=message, color=discord.Color.green()))

    async def error(self, title: str, message: str) -> None:
        await self._send(embed=discord.Embed(title=f"❌ {title}", description=message, color=discord.Color.red()))

    async def _send(self, embed: discord.Embed, view: Optional[discord.ui.View] = None) -> None:
        kwargs = {"embed": embed, "ephemeral": True}
        if view is not None:
            kwargs["view"] = view
        if self.interaction.response.is_done():
            await self.interaction.followup.send(**kwargs)
        else:
            await self.interaction.response.send_message(**kwargs)


class TaskBoardView(discord.ui.View):
    """Buttons under a board message."""

    def __init__(self, cog: "TodoList") -> None:
        super().__init__(timeout=None)
        self.cog = cog
        self.refresh_state()

    def refresh_state(self) -> None:
        """Disable the add button while an add is in flight."""
        adding = self.cog.controller.is_adding
        self.add_button.disabled = adding
        self.add_button.label = "Adding..." if adding else "Add task"

    @discord.ui.button(label="Add task", style=discord.ButtonStyle.success, emoji="➕")
    async def add_button(self, interaction: discord.Interaction, button: discord.ui.Button) -> None:
        await self.cog.run_action(
            interaction, "add_task", lambda ui: self.cog.controller.request_add_task(dialog=ui, notifier=ui)
        )


class TodoList(commands.Cog):
    """Deadline to-do list cog."""

    def __init__(self, bot: commands.Bot, controller: TaskListController):
        self.bot = bot
        self.controller = controller
        self.boards: Dict[int, Tuple[discord.Message, TaskBoardView]] = {}
        logger.info("TodoList cog initialized")

    async def cog_load(self) -> None:
        self.controller.on_change = self.refresh_boards
        await self.controller.load()
        self.controller.start_countdown()
        self.board_refresh_task.start()

    async def cog_unload(self) -> None:
        self.board_refresh_task.cancel()
        self.controller.on_change = None
        self.controller.dispose()
        for message_id in list(self.boards):
            self._drop_board(message_id)

    # -------------------- board --------------------

    @tasks.loop(seconds=BOARD_REFRESH_SECONDS)
    async def board_refresh_task(self):
        """Re-render every board from the latest countdown state."""
        await self.refresh_boards()

    @board_refresh_task.before_loop
    async def before_board_refresh(self):
        await self.bot.wait_until_ready()

    async def refresh_boards(self) -> None:
        if not self.boards:
            return
        embed = build_board_embed(self.controller.snapshot())
        for message_id, (message, view) in list(self.boards.items()):
            view.refresh_state()
            try:
                await message.edit(embed=embed, view=view)
            except (discord.NotFound, discord.Forbidden) as e:
                logger.info(f"Board message {message_id} can no longer be edited ({e.status}); dropping it")
                self._drop_board(message_id)
            except discord.HTTPException as e:
                if e.status == 401:
                    logger.warning(f"Board message {message_id} rejected the bot's credentials; dropping it")
                    self._drop_board(message_id)
                else:
                    logger.error(f"Error refreshing board {message_id}: {e}")

    def _drop_board(self, message_id: int) -> None:
        board = self.boards.pop(message_id, None)
        if board is not None:
            board[1].stop()

    # -------------------- action plumbing --------------------

    async def run_action(
        self,
        interaction: discord.Interaction,
        name: str,
        action: Callable[[InteractionUI], Awaitable[ActionResult]],
    ) -> None:
        """Run a controller action for an interaction and report outcomes the action itself doesn't."""
        ui = InteractionUI(interaction)
        try:
            result = await action(ui)
            logger.info(f"/{name} by {interaction.user}: {result.status.value}")
            if result.status == ActionStatus.NOOP:
                await ui.error("Not found", "That task no longer exists.")
            elif result.status == ActionStatus.BUSY:
                await ui.error("Please wait", "Another task is still being added.")
            await self.refresh_boards()
        except Exception as e:
            logger.error(f"Unhandled error in {name}: {e}")
            try:
                await ui.error("Error!", "An unexpected error occurred. Please try again later.")
            except discord.HTTPException as send_error:
                logger.error(f"Could not report error for {name}: {send_error}")

    def task_choices(self, current: str) -> List[app_commands.Choice[str]]:
        """Autocomplete choices for the task argument."""
        current = (current or "").lower()
        choices = []
        for task in self.controller.tasks:
            if current and current not in task.text.lower():
                continue
            label = f"✅ {task.text}" if task.completed else task.text
            choices.append(app_commands.Choice(name=label[:100], value=task.id))
        return choices[:25]

    # -------------------- commands --------------------

    @app_commands.command(name="tasks", description="Show the to-do list")
    async def list_tasks(self, interaction: discord.Interaction):
        """Show the current task list to the caller only."""
        embed = build_board_embed(self.controller.snapshot())
        await interaction.response.send_message(embed=embed, ephemeral=True)

    @app_commands.command(name="board", description="Post a live to-do board in this channel")
    async def board(self, interaction: discord.Interaction):
        """Post a board that is re-rendered with live countdowns."""
        try:
            view = TaskBoardView(self)
            await interaction.response.send_message(embed=build_board_embed(self.controller.snapshot()), view=view)
            original = await interaction.original_response()
            # Edit through the channel: the interaction token behind `original` expires after 15 minutes
            message = await interaction.channel.fetch_message(original.id)
            self.boards[message.id] = (message, view)
            logger.info(f"Board posted in channel {interaction.channel_id} (message {message.id})")
        except Exception as e:
            logger.error(f"Error posting board: {e}")
            if not interaction.response.is_done():
                await interaction.response.send_message("❌ Could not post the board.", ephemeral=True)

    @app_commands.command(name="add_task", description="Add a new task with a deadline")
    async def add_task(self, interaction: discord.Interaction):
        await self.run_action(
            interaction, "add_task", lambda ui: self.controller.request_add_task(dialog=ui, notifier=ui)
        )

    @app_commands.command(name="edit_task", description="Edit a task's name and deadline")
    @app_commands.describe(task="The task to edit")
    async def edit_task(self, interaction: discord.Interaction, task: str):
        await self.run_action(
            interaction, "edit_task", lambda ui: self.controller.edit_task(task, dialog=ui, notifier=ui)
        )

    @app_commands.command(name="toggle_task", description="Mark a task as done or not done")
    @app_commands.describe(task="The task to toggle")
    async def toggle_task(self, interaction: discord.Interaction, task: str):
        await self.run_action(
            interaction, "toggle_task", lambda ui: self.controller.toggle_completion(task, notifier=ui)
        )

    @app_commands.command(name="delete_task", description="Delete a task")
    @app_commands.describe(task="The task to delete")
    async def delete_task(self, interaction: discord.Interaction, task: str):
        await self.run_action(
            interaction, "delete_task", lambda ui: self.controller.delete_task(task, dialog=ui, notifier=ui)
        )

    @edit_task.autocomplete('task')
    async def edit_task_autocomplete(self, interaction: discord.Interaction, current: str):
        return self.task_choices(current)

    @toggle_task.autocomplete('task')
    async def toggle_task_autocomplete(self, interaction: discord.Interaction, current: str):
        return self.task_choices(current)

    @delete_task.autocomplete('task')
    async def delete_task_autocomplete(self, interaction: discord.Interaction, current: str):
        return self.task_choices(current)


async def setup(bot: commands.Bot):
    """Setup function for the TodoList cog."""
    from services.firebase_service import FirebaseService

    # Firebase service reads its credentials from the environment
    firebase_service = FirebaseService()
    controller = TaskListController(firebase_service)
    await bot.add_cog(TodoList(bot, controller))
