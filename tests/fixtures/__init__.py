"""测试辅助：样本数据与本地假 API 服务。"""
