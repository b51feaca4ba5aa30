"""团队成员名单 -- 扁平名单，无权限模型"""

from pydantic import BaseModel, Field


class TeamMember(BaseModel):
    """团队成员"""

    name: str = Field(description="成员名（任务 assignee/creator 引用此值）")
    role: str = Field(default="", description="角色")
    initials: str = Field(default="", description="头像缩写")
    color: str = Field(default="", description="头像颜色标签")


TEAM_MEMBERS: list[TeamMember] = [
    TeamMember(name="Dairo", role="CEO", initials="DA", color="bg-purple-500"),
    TeamMember(name="Stiven", role="Dev", initials="ST", color="bg-blue-500"),
    TeamMember(name="Mariana", role="Designer", initials="MA", color="bg-pink-500"),
    TeamMember(name="Jose", role="Freelancer", initials="JO", color="bg-orange-500"),
    TeamMember(name="Anderson", role="Freelancer", initials="AN", color="bg-teal-500"),
    TeamMember(name="Edgardo", role="Dev", initials="EM", color="bg-blue-500"),
]
